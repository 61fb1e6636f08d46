"""Domain enums for production allocation."""

from enum import Enum


class StageCategory(str, Enum):
    """
    Production stage of an operation.

    Declaration order is the production order: every operation of an
    earlier category must be done before a later category can proceed.
    """

    CUTTING = "CUTTING"
    SEWING = "SEWING"
    FINISH = "FINISH"

    @property
    def rank(self) -> int:
        """Position of the stage in the production chain."""
        return list(StageCategory).index(self)

    def precedes(self, other: "StageCategory") -> bool:
        return self.rank < other.rank

    def earlier_stages(self) -> list["StageCategory"]:
        """Stages that must be complete before this one."""
        return [stage for stage in StageCategory if stage.precedes(self)]

    @property
    def requires_worker(self) -> bool:
        """Finish operations (QC, packing) may run without a named worker."""
        return self != StageCategory.FINISH


class OperationStatus(str, Enum):
    """Status of an operation assignment."""

    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    DONE = "done"

    @property
    def is_terminal(self) -> bool:
        return self == OperationStatus.DONE

    def can_transition_to(
        self, target_status: "OperationStatus", allow_rollback: bool = False
    ) -> bool:
        """Check if an operation can move from current status to target status."""
        valid_transitions = {
            OperationStatus.WAITING: {OperationStatus.IN_PROGRESS},
            OperationStatus.IN_PROGRESS: {OperationStatus.DONE},
            OperationStatus.DONE: set(),
        }
        if allow_rollback:
            valid_transitions[OperationStatus.DONE] = {
                OperationStatus.IN_PROGRESS,
                OperationStatus.WAITING,
            }
        return target_status in valid_transitions.get(self, set())


class OrderStatus(str, Enum):
    """Order lifecycle status as seen by the production engine."""

    ACCEPTED = "accepted"
    IN_WORK = "in_work"
    DONE = "done"

    @property
    def is_assignable(self) -> bool:
        """Only accepted or running orders can be (re)distributed."""
        return self in {OrderStatus.ACCEPTED, OrderStatus.IN_WORK}


class FlowMode(str, Enum):
    """Input mode of the line-balance calculator."""

    BY_SHIFT_CAPACITY = "BY_SHIFT_CAPACITY"
    BY_WORKERS = "BY_WORKERS"
    BY_WORKPLACES = "BY_WORKPLACES"
    BY_AREA = "BY_AREA"
    BY_T_AND_M = "BY_T_AND_M"


class ProductType(str, Enum):
    """Garment type; drives workplace coefficients of the flow calculator."""

    DRESS = "dress"
    COAT = "coat"
    SUIT = "suit"
    UNDERWEAR = "underwear"
