"""Core gameplay primitives (grid builder, physics engine, play FSM, and the frame loop).

Kept free of FastAPI concerns so it can be reused by API routes, scripts, and tests.
"""
