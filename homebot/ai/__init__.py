"""
AI Module - The "Brain" of the chat bot

This module turns free-form chat messages into either a conversational
reply or exactly one executed action (a local bot command or a Home
Assistant webhook).

Architecture Overview:
=====================

┌─────────────────────────────────────────────────────────────────────────┐
│                      Intent Router (Orchestrator)                        │
│                    [intent binding - small and fast]                     │
│                                                                          │
│          Classifies: CHAT? a bot COMMAND? a smart-home WEBHOOK?          │
└───────────────────────────────┬─────────────────────────────────────────┘
                                │
        ┌───────────────────────┼───────────────────────┐
        │                       │                       │
        ▼                       ▼                       ▼
┌───────────────┐     ┌───────────────┐     ┌───────────────┐
│     CHAT      │     │    COMMAND    │     │    WEBHOOK    │
│               │     │               │     │               │
│ chat binding  │     │ function      │     │ function      │
│ replies       │     │ binding picks │     │ binding picks │
│               │     │ "!command"    │     │ + validated   │
│               │     │ handler runs  │     │ POST to HA    │
└───────────────┘     └───────────────┘     └───────────────┘

Module Structure:
================
- providers/: AI provider clients (Ollama, OpenAI, Anthropic)
- gateway/: One generate() over every provider, tool calls or text markers
- actions/: Action registry, parameter extraction and validation
- router/: The orchestrator that routes messages to replies or actions
- prompts/: Prompt templates built from the live action catalog
- monitoring/: Logging, metrics and the audit log

Submodules are imported directly (homebot.ai.router, homebot.ai.actions, ...);
this package re-exports nothing so the services layer can import the
catalog without pulling in the router.
"""

__version__ = "0.1.0"
