"""
Agent Skills Package

Skills are pure, reusable functions shared by the router, the providers
and the orchestrator. None of them performs I/O.
"""
