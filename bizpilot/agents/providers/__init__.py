"""
Chat-completion providers.

Each provider turns a list of chat messages into assistant text. Failures are
reported as ProviderOutcome values so the ProviderChain can fall through
without exceptions crossing its boundary.
"""
