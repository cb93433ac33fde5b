# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Requirements maturity assessment tools package.

Scores actor, use case and business requirement records against a static
maturity criteria catalog, reweights the result for the project context,
and turns unmet criteria and dependency-graph findings into ranked
recommendations and a dashboard health score.
"""
