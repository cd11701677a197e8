"""
Context Resolver

Builds a decision context from three layers with strict priority:

    user input  >  workspace default  >  inferred value (confidence >= 0.6)

A field nothing resolves stays empty. If a low-confidence inference was
seen, its confidence is kept for display but no value or signal is recorded.
"""
from typing import Optional

from ...models.db_models import ContextSource
from ...models.decision import (
    ContextField, ContextInput, DecisionContext, InferenceResult, InferredField,
    MarketContext, WorkspaceDefaults,
)

MIN_INFERENCE_CONFIDENCE = 0.6

CONTEXT_FIELDS = ("company_stage", "business_model", "primary_kpi", "market_type", "market_segment")


def resolve_context_field(
    user_value: Optional[str],
    workspace_value: Optional[str],
    inferred: Optional[InferredField],
) -> ContextField:
    """Resolve one context field across the three layers."""
    if user_value:
        return ContextField(value=user_value, source=ContextSource.USER)

    if workspace_value:
        return ContextField(value=workspace_value, source=ContextSource.WORKSPACE)

    if inferred is not None and inferred.value and inferred.confidence >= MIN_INFERENCE_CONFIDENCE:
        return ContextField(
            value=inferred.value,
            source=ContextSource.INFERRED,
            confidence_score=inferred.confidence,
            inferred_signal=inferred.signal,
        )

    if inferred is not None and inferred.confidence > 0:
        return ContextField(
            value=None,
            source=ContextSource.INFERRED,
            confidence_score=inferred.confidence,
        )

    return ContextField(value=None, source=ContextSource.INFERRED)


def resolve_full_context(
    user_input: Optional[ContextInput],
    workspace_defaults: Optional[WorkspaceDefaults],
    inference: Optional[InferenceResult],
) -> DecisionContext:
    """Resolve every context field. Any of the three layers may be None."""
    user_input = user_input or ContextInput()
    workspace_defaults = workspace_defaults or WorkspaceDefaults()
    inference = inference or InferenceResult()

    resolved = {
        name: resolve_context_field(
            getattr(user_input, name),
            getattr(workspace_defaults, name),
            getattr(inference, name),
        )
        for name in CONTEXT_FIELDS
    }

    return DecisionContext(
        company_stage=resolved["company_stage"],
        business_model=resolved["business_model"],
        primary_kpi=resolved["primary_kpi"],
        market=MarketContext(type=resolved["market_type"], segment=resolved["market_segment"]),
    )


def apply_context_changes(current: DecisionContext, changes: ContextInput) -> DecisionContext:
    """
    Apply a partial user edit on top of the current context.

    Only fields present (not None) in changes are touched, and each touched
    field's source becomes "user". The current context is left unmodified.
    """
    updated = DecisionContext.from_dict(current.to_dict())

    if changes.company_stage is not None:
        updated.company_stage = ContextField.from_user(changes.company_stage)
    if changes.business_model is not None:
        updated.business_model = ContextField.from_user(changes.business_model)
    if changes.primary_kpi is not None:
        updated.primary_kpi = ContextField.from_user(changes.primary_kpi)
    if changes.market_type is not None:
        updated.market.type = ContextField.from_user(changes.market_type)
    if changes.market_segment is not None:
        updated.market.segment = ContextField.from_user(changes.market_segment)

    return updated
