"""
Reference Data Interfaces

Read-only access to data owned by the order-management layer: the
operation catalogue, technologists' teams and workshops.
"""

from abc import ABC, abstractmethod

from ..value_objects.reference import OperationDefinition, Worker, Workshop


class OperationCatalog(ABC):
    """Lookup of catalogue operations."""

    @abstractmethod
    def get_by_id(self, operation_id: int) -> OperationDefinition | None:
        """
        Retrieve an operation definition.

        Args:
            operation_id: Catalogue operation identifier

        Returns:
            Operation definition or None if not found
        """
        pass


class WorkforceDirectory(ABC):
    """Lookup of workers on technologists' teams."""

    @abstractmethod
    def get_worker(self, worker_id: int) -> Worker | None:
        """
        Retrieve a worker.

        Args:
            worker_id: Worker identifier

        Returns:
            Worker or None if not found
        """
        pass

    @abstractmethod
    def technologist_exists(self, technologist_id: int) -> bool:
        pass

    @abstractmethod
    def workers_on_floor(self, floor_id: int) -> list[Worker]:
        """
        Retrieve every worker assigned to a floor.

        Args:
            floor_id: Building floor identifier

        Returns:
            Workers on the floor, possibly empty
        """
        pass


class WorkshopRepository(ABC):
    """Lookup of workshops."""

    @abstractmethod
    def get_by_id(self, workshop_id: int) -> Workshop | None:
        pass
