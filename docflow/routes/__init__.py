"""
FastAPI routers for all API endpoints.

Each module defines a router for one concern (documents, invoices, health).
Routers validate input, call one service, and map its result to a response model.
"""
