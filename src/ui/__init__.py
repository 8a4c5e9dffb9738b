"""
UI Module
=========

Streamlit operator control surface:
- Total dispatch setpoint (P / Q)
- Unit cards with enable toggle
- Sequence log with reset
- Dispatch history with edit, delete and export
"""
