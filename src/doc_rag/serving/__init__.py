"""
Serving — FastAPI application over the ingestion pipeline and chat agent.

The routes are thin adapters: every request maps onto one pipeline,
document-management, or orchestrator call.
"""
