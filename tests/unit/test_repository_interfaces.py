"""Unit tests for repository port interfaces."""

import inspect
import pytest
from abc import ABC

from src.water_lab.application.ports.repositories import (
    LabResultRepository,
    NotificationRepository,
    ReportRepository
)
from src.water_lab.infrastructure.repositories.memory_repositories import (
    InMemoryLabResultRepository,
    InMemoryNotificationRepository,
    InMemoryReportRepository
)
from src.water_lab.infrastructure.repositories.sql_repositories import (
    SQLAlchemyLabResultRepository,
    SQLAlchemyNotificationRepository,
    SQLAlchemyReportRepository
)


class TestRepositoryInterfaces:
    """Test cases for the repository ports."""

    @pytest.mark.parametrize("port", [LabResultRepository, ReportRepository, NotificationRepository])
    def test_ports_are_abstract(self, port):
        """Test ports cannot be instantiated."""
        assert issubclass(port, ABC)
        assert inspect.isabstract(port)
        with pytest.raises(TypeError):
            port()

    def test_lab_result_repository_methods(self):
        """Test the lab result store operations."""
        assert LabResultRepository.__abstractmethods__ == {
            'replace', 'find_by_report', 'find_grouped', 'get_revision', 'delete_for_report'
        }

    def test_replace_signature(self):
        """Test expected_revision is optional."""
        sig = inspect.signature(LabResultRepository.replace)

        assert list(sig.parameters) == ['self', 'report_id', 'rows', 'expected_revision']
        assert sig.parameters['expected_revision'].default is None

    def test_report_repository_methods(self):
        """Test the report collaborator operations."""
        assert ReportRepository.__abstractmethods__ == {'save', 'find_by_id', 'find_by_area', 'update_status'}

    @pytest.mark.parametrize("implementation,port", [
        (InMemoryLabResultRepository, LabResultRepository),
        (InMemoryReportRepository, ReportRepository),
        (InMemoryNotificationRepository, NotificationRepository),
        (SQLAlchemyLabResultRepository, LabResultRepository),
        (SQLAlchemyReportRepository, ReportRepository),
        (SQLAlchemyNotificationRepository, NotificationRepository),
    ])
    def test_implementations_are_concrete(self, implementation, port):
        """Test every adapter implements its whole port."""
        assert issubclass(implementation, port)
        assert not inspect.isabstract(implementation)
