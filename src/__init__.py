"""
Grid Dispatch Center
====================

Operator control surface for dispatching a total P/Q setpoint across a
station's switchgear units:
- Aggregate P split by static weight, residual on the first unit
- Tiered reactive (Q) dispatch favoring the primary unit
- Target-lock reconciliation of single-unit edits
- Ledger of committed snapshots with CSV/XLSX/JSON/PDF export

Architecture:
- station/: Configuration (units, weights, storage) and logging
- resources/: Unit and UnitPool models
- allocation/: Allocation engine and dispatch session
- ledger/: Dispatch ledger and JSON persistence
- reporting/: Sequence log and exports
- ui/: Streamlit control surface, input parsing, controller
"""

__version__ = "1.0.0"
