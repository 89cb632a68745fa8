"""SentinelQA Cost Tracker -- token accounting and per-run budget enforcement.

Every gateway call made by the agent loop is recorded here.  The tracker
warns once when spend crosses ``warn_at_pct`` of the run budget and raises
:class:`BudgetExceededError` when the budget is exceeded.  A budget of 0
means unlimited.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from sentinelqa.models import MODELS, PRICING

logger = logging.getLogger("sentinelqa.engine.cost_tracker")

# (input, output) USD per million tokens, keyed by model id
MODEL_PRICING: dict[str, tuple[float, float]] = {
    model: (prices["input"], prices["output"]) for model, prices in PRICING.items()
}

_FALLBACK_MODEL = MODELS["anthropic"]
_LEDGER_FILENAME = "costs.jsonl"


class BudgetExceededError(Exception):
    """Raised when a run's spend exceeds its budget."""

    pass


@dataclasses.dataclass
class APICall:
    """One recorded model call."""

    model: str
    input_tokens: int
    output_tokens: int
    cost_usd: float
    purpose: str = ""
    timestamp: str = dataclasses.field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )


@dataclasses.dataclass
class CostSummary:
    total_cost_usd: float
    total_input_tokens: int
    total_output_tokens: int
    call_count: int
    budget_limit_usd: float
    budget_remaining_usd: float
    budget_exceeded: bool
    warning_issued: bool
    calls_by_model: dict[str, int]
    cost_by_model: dict[str, float]


class CostTracker:
    """Accumulates token usage and cost for a single run."""

    def __init__(
        self,
        per_run_usd: float = 0.0,
        warn_at_pct: float = 80,
        log: logging.Logger | None = None,
    ) -> None:
        self._per_run_usd = per_run_usd
        self._warn_at_pct = warn_at_pct
        self._log = log or logger
        self.calls: list[APICall] = []
        self.total_cost = 0.0
        self.warning_issued = False
        self.budget_exceeded = False

    # -- Public API ----------------------------------------------------------

    def record_call(
        self,
        model: str,
        input_tokens: int,
        output_tokens: int,
        purpose: str = "",
    ) -> APICall:
        """Record one call and enforce the budget.

        Raises:
            BudgetExceededError: If the run total now exceeds ``per_run_usd``.
        """
        cost = self._calculate_cost(model, input_tokens, output_tokens)
        call = APICall(
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=cost,
            purpose=purpose,
        )
        self.calls.append(call)
        self.total_cost += cost
        self._log.debug(
            "Recorded %s call: %d in / %d out tokens, $%.4f (run total $%.4f)",
            model, input_tokens, output_tokens, cost, self.total_cost,
        )

        if self._per_run_usd <= 0:
            return call

        pct = self.total_cost / self._per_run_usd * 100
        if not self.warning_issued and pct >= self._warn_at_pct:
            self.warning_issued = True
            self._log.warning(
                "Run cost $%.4f has reached %.0f%% of the $%.2f budget",
                self.total_cost, pct, self._per_run_usd,
            )
        if self.total_cost > self._per_run_usd:
            self.budget_exceeded = True
            raise BudgetExceededError(
                f"Run budget exceeded: ${self.total_cost:.4f} > ${self._per_run_usd:.2f}"
            )
        return call

    def get_summary(self) -> CostSummary:
        calls_by_model: dict[str, int] = {}
        cost_by_model: dict[str, float] = {}
        for call in self.calls:
            calls_by_model[call.model] = calls_by_model.get(call.model, 0) + 1
            cost_by_model[call.model] = cost_by_model.get(call.model, 0.0) + call.cost_usd

        remaining = max(self._per_run_usd - self.total_cost, 0.0) if self._per_run_usd > 0 else 0.0
        return CostSummary(
            total_cost_usd=self.total_cost,
            total_input_tokens=sum(c.input_tokens for c in self.calls),
            total_output_tokens=sum(c.output_tokens for c in self.calls),
            call_count=len(self.calls),
            budget_limit_usd=self._per_run_usd,
            budget_remaining_usd=remaining,
            budget_exceeded=self.budget_exceeded,
            warning_issued=self.warning_issued,
            calls_by_model=calls_by_model,
            cost_by_model=cost_by_model,
        )

    @staticmethod
    def record_run_cost(
        base_dir: Path,
        run_id: str,
        goal: str,
        cost_usd: float,
        passed: bool | None = None,
    ) -> Path:
        """Append a run's total to the ``costs.jsonl`` ledger in *base_dir*."""
        base_dir.mkdir(parents=True, exist_ok=True)
        ledger = base_dir / _LEDGER_FILENAME
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "run_id": run_id,
            "goal": goal,
            "cost_usd": round(cost_usd, 6),
        }
        if passed is not None:
            entry["passed"] = passed
        with open(ledger, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")
        return ledger

    # -- Internals -----------------------------------------------------------

    @staticmethod
    def _calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
        input_price, output_price = MODEL_PRICING.get(model, MODEL_PRICING[_FALLBACK_MODEL])
        return (input_tokens / 1_000_000) * input_price + (output_tokens / 1_000_000) * output_price
