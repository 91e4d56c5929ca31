"""
Payroll Kernel

Monthly salary generation and project change-history core:
- Idempotent, additive-only salary generation per (employee, month)
- Multi-tier commission aggregation from collected project revenue
- One-way Pending -> Paid payment gate
- Append-only, hash-chained project history
"""

__version__ = "0.1.0"
