"""
Agent Subagents Package

Subagents own one decision each and are composed by the main agent.
"""
