"""
Schema Tester Playground - HTTP service for the schema editor.

The browser editor keeps schema, JSON and result in the page; this service
runs the pipeline for it:
- Pick a library version from the registry
- Compile schema source and validate JSON
- Turn a session into a shareable link and back

Usage:
    uvicorn playground.app:app --port 8081
"""
