"""
AI Metrics - In-memory usage counters for the Model Gateway.

Every gateway call (classification, chat reply, function pass) is recorded
once, including the ones that timed out. `!status` and `GET /stats` read a
snapshot:

    total ── by purpose (intent / chat / function)
          ── by provider (ollama / openai / anthropic)
          ── tokens, latency, timeouts, estimated spend

Spend is a rough estimate from list prices per 1M tokens; local Ollama
models are free.
"""

from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Deque, Dict, List, Optional

from homebot.ai.providers.base import ProviderType, TokenUsage

# (input, output) USD per 1M tokens
PRICE_PER_1M_TOKENS = {
    ProviderType.OLLAMA: (0.0, 0.0),
    ProviderType.OPENAI: (0.15, 0.60),       # gpt-4o-mini
    ProviderType.ANTHROPIC: (0.80, 4.0),     # claude haiku
}


@dataclass
class ModelCallSample:
    """One recorded gateway call."""
    request_id: str
    provider: str
    model: str
    purpose: str
    tokens: TokenUsage
    latency_ms: float
    success: bool
    timed_out: bool = False
    cost: float = 0.0
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class UsageSnapshot:
    """Totals since start-up (or the last reset)."""
    total_requests: int = 0
    failed_requests: int = 0
    timeouts: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_latency_ms: float = 0.0
    estimated_cost: float = 0.0
    requests_by_purpose: Dict[str, int] = field(default_factory=dict)
    requests_by_provider: Dict[str, int] = field(default_factory=dict)
    tokens_by_provider: Dict[str, int] = field(default_factory=dict)

    @property
    def successful_requests(self) -> int:
        return self.total_requests - self.failed_requests

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    @property
    def avg_latency_ms(self) -> float:
        return self.total_latency_ms / self.total_requests if self.total_requests else 0.0

    @property
    def success_rate(self) -> float:
        """Percentage of calls that produced a usable reply."""
        if not self.total_requests:
            return 0.0
        return 100.0 * self.successful_requests / self.total_requests

    def to_dict(self) -> Dict:
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "timeouts": self.timeouts,
            "success_rate": round(self.success_rate, 1),
            "tokens": {
                "prompt": self.prompt_tokens,
                "completion": self.completion_tokens,
                "total": self.total_tokens,
            },
            "avg_latency_ms": round(self.avg_latency_ms, 2),
            "estimated_cost_usd": round(self.estimated_cost, 6),
            "requests_by_purpose": dict(self.requests_by_purpose),
            "requests_by_provider": dict(self.requests_by_provider),
            "tokens_by_provider": dict(self.tokens_by_provider),
        }


class AIMetrics:
    """
    Thread-safe usage counters plus a bounded history of recent calls.

    Usage:
        ai_metrics.record_request(
            request_id="abc123",
            provider=ProviderType.OLLAMA,
            model="qwen2.5:1.5b",
            tokens=TokenUsage(100, 20),
            latency_ms=250.5,
            success=True,
            purpose="intent",
        )
        ai_metrics.get_stats().requests_by_purpose   # {"intent": 1}
    """

    def __init__(self, max_history: int = 500):
        self._lock = Lock()
        self._max_history = max_history
        self._recent: Deque[ModelCallSample] = deque(maxlen=max_history)
        self._reset_counters()

    def _reset_counters(self) -> None:
        self._totals = UsageSnapshot()
        self._by_purpose: Counter = Counter()
        self._by_provider: Counter = Counter()
        self._tokens_by_provider: Counter = Counter()

    def record_request(
        self,
        request_id: str,
        provider: ProviderType,
        model: str,
        tokens: TokenUsage,
        latency_ms: float,
        success: bool,
        purpose: str = "chat",
        timed_out: bool = False,
    ) -> ModelCallSample:
        provider_name = getattr(provider, "value", str(provider))
        sample = ModelCallSample(
            request_id=request_id,
            provider=provider_name,
            model=model,
            purpose=purpose,
            tokens=tokens,
            latency_ms=latency_ms,
            success=success,
            timed_out=timed_out,
            cost=self.estimate_cost(provider, tokens),
        )

        with self._lock:
            self._recent.append(sample)
            totals = self._totals
            totals.total_requests += 1
            totals.failed_requests += 0 if success else 1
            totals.timeouts += 1 if timed_out else 0
            totals.prompt_tokens += tokens.prompt_tokens
            totals.completion_tokens += tokens.completion_tokens
            totals.total_latency_ms += latency_ms
            totals.estimated_cost += sample.cost
            self._by_purpose[purpose] += 1
            self._by_provider[provider_name] += 1
            self._tokens_by_provider[provider_name] += tokens.total_tokens

        return sample

    @staticmethod
    def estimate_cost(provider: ProviderType, tokens: TokenUsage) -> float:
        input_price, output_price = PRICE_PER_1M_TOKENS.get(provider, (0.0, 0.0))
        return (tokens.prompt_tokens * input_price + tokens.completion_tokens * output_price) / 1_000_000

    def get_stats(self) -> UsageSnapshot:
        """A copy of the current totals."""
        with self._lock:
            totals = self._totals
            return UsageSnapshot(
                total_requests=totals.total_requests,
                failed_requests=totals.failed_requests,
                timeouts=totals.timeouts,
                prompt_tokens=totals.prompt_tokens,
                completion_tokens=totals.completion_tokens,
                total_latency_ms=totals.total_latency_ms,
                estimated_cost=totals.estimated_cost,
                requests_by_purpose=dict(self._by_purpose),
                requests_by_provider=dict(self._by_provider),
                tokens_by_provider=dict(self._tokens_by_provider),
            )

    def get_recent_requests(self, limit: int = 10, purpose: Optional[str] = None) -> List[ModelCallSample]:
        """Newest first, optionally for one purpose."""
        with self._lock:
            samples = [s for s in reversed(self._recent) if purpose is None or s.purpose == purpose]
        return samples[:limit]

    def reset(self) -> None:
        with self._lock:
            self._recent.clear()
            self._reset_counters()


# ---------------------------------------------------------------------------
# SINGLETON INSTANCE
# ---------------------------------------------------------------------------
ai_metrics = AIMetrics()
