# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Requirements dependency graph tools package.

Builds a directed graph of cross-references between requirement records
and analyzes it for cycles, node importance, change impact and layering.
"""
