"""Search-and-summarize orchestration."""

from bplus.chat.orchestrator import SynthesisOrchestrator, SynthesisRequest

__all__ = ["SynthesisOrchestrator", "SynthesisRequest"]
