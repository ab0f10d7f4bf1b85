"""
Formula Optimizer
=================

Planning-level formulation tool for solid and liquid oral dosage forms:
- Active pharmaceutical ingredient (API) and excipient catalog
- Heuristic multi-criteria scoring (cost, performance, stability, compliance)
- Variant, genetic and simulated-annealing search over excipient choices
- Local persistence of submissions, results and settings

Architecture:
- catalog/: static API and excipient lookup tables
- optimization/: formulation assembly, scoring, search strategies
- storage/: SQLite record store and last-submission JSON store
- ui/: Streamlit interface
"""

__version__ = "1.0.0"
