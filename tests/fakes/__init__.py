"""Test fake implementations for dependency injection testing."""

from tests.fakes.fake_provisioner import FakeProvisioner, FakeProvisionerFactory
from tests.fakes.fake_registrar import FakeRegistrar
from tests.fakes.recording_reporter import RecordingReporter

__all__ = [
    "FakeProvisioner",
    "FakeProvisionerFactory",
    "FakeRegistrar",
    "RecordingReporter",
]
