"""Conversation orchestration state machine."""

from .loop import OrchestrationLoop, LoopState, TurnOutcome, DEFAULT_MAX_TOOL_CYCLES, CYCLE_LIMIT_MESSAGE

__all__ = ["OrchestrationLoop", "LoopState", "TurnOutcome", "DEFAULT_MAX_TOOL_CYCLES", "CYCLE_LIMIT_MESSAGE"]
