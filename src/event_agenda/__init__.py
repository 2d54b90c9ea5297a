"""Event agenda check-in package.

Organized by feature modules (agenda catalog, check-in ledger) with
service/repository layers over a MySQL store.
"""
