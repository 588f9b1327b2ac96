"""FastAPI boundary for the dictionary lookup service.

Run with ``python -m dictionary_api.webapi`` or point uvicorn at the
``dictionary_api.webapi.application:create_app`` factory.
"""
