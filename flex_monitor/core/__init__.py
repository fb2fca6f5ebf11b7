"""Core module - collector building blocks shared by every stage.

Structure:
- domain/      → Source specs, records, measurements, alerts
- errors       → Error taxonomy
- monitoring/  → Live pipeline state for the status API
"""
