"""
Ship-gate classifier.

Decides, from per-stage progress alone, whether a project should ship,
keep building, ship while building the next stage, or has scope creep
(later-stage work started before the current stage is done).
"""

from shipgate.lib.types import ShipGate, ShipGateStatus, Stage, StageProgressInfo


def compute_ship_gate(stage_progress: list[StageProgressInfo]) -> ShipGate:
    """Classify readiness from stage progress in canonical stage order.

    Stages with no checklist items are ignored. Pure and total: the same
    input always yields the same ShipGate, and nothing here raises.
    """
    stages = [s for s in stage_progress if s.total > 0]

    if not stages:
        return ShipGate(status=ShipGateStatus.BUILDING, current_stage=Stage.MVP)

    idx = next((i for i, s in enumerate(stages) if s.percent < 100), None)

    if idx is None:
        last = stages[-1].stage
        return ShipGate(
            status=ShipGateStatus.SHIP_IT,
            current_stage=last,
            stage_progress=stages,
            alert=f"all stages complete — ship {last.value}",
        )

    current = stages[idx]
    later_started = [s for s in stages[idx + 1:] if s.completed > 0]

    if idx == 0:
        if later_started:
            return ShipGate(
                status=ShipGateStatus.SCOPE_CREEP,
                current_stage=current.stage,
                stage_progress=stages,
                alert=(
                    f"scope creep: {later_started[0].stage.value} work started "
                    f"but {current.stage.value} is only {current.percent}% done"
                ),
            )
        return ShipGate(
            status=ShipGateStatus.BUILDING,
            current_stage=current.stage,
            stage_progress=stages,
        )

    prior = stages[idx - 1].stage

    if current.completed > 0 or later_started:
        return ShipGate(
            status=ShipGateStatus.SHIP_AND_BUILD,
            current_stage=prior,
            stage_progress=stages,
            alert=f"{prior.value} ready to ship — {current.stage.value} in progress",
        )

    return ShipGate(
        status=ShipGateStatus.SHIP_IT,
        current_stage=prior,
        stage_progress=stages,
        alert=f"{prior.value} is ready — ship it!",
    )
