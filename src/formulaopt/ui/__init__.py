"""
Formula Optimizer UI
====================

Streamlit front end. Run with:

    streamlit run src/formulaopt/ui/app.py
"""
