"""
Revenue Forecast Root Module

Batch forecasting of a periodic business metric (e.g. monthly revenue)
with singular spectrum analysis.

Layer Structure:
- Domain: Forecasting engine, entities, errors and collaborator interfaces
- Application: Training pipeline use case and reporting DTOs
- Infrastructure: SQL observation source and checkpoint storage adapters
- Shared: Cross-cutting concerns and shared utilities
- Main: Composition root, configuration and command line entry point
"""
