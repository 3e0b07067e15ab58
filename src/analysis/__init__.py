"""Frontier analysis.

- filters.py: which edges (kinds, skip patterns, activation) take part
- targets.py: target name/constraint and package-id selection
- reachability.py: SCC-contracted reverse reachability per target set
- frontier.py: per-member direct entry edges into the reachability set
- report.py: ordered report and summary counts
- audit.py: end-to-end runner
- baseline.py: comparison against a previous report
"""
