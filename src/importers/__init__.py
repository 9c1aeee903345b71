"""Importers turning exported transaction files into domain transactions."""

from importers.transactions_csv import load_transactions

__all__ = ["load_transactions"]
