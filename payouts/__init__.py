"""
Vendor payout reconciliation pipeline.

Ingests courier order exports and supplier price lists, computes payable
amounts per supplier and currency, and renders payout reports.
"""
