"""Fake ComputeProvisioner for testing with dependency injection."""

from typing import Any

from mayfly.core.config import RunConfig
from mayfly.core.models import ResourceSet, TeardownResult
from mayfly.core.signals import CancellationToken
from mayfly.errors import ProvisionError


class FakeProvisioner:
    """In-memory provisioner that records every call.

    Parameters
    ----------
    region : str
        Region the provisioner was built for
    resources : ResourceSet | None
        Set returned by ``provision``. Defaults to ``{i-1, sg-1}``.
    provision_error : ProvisionError | None
        Raised by ``provision`` instead of returning
    teardown_result : TeardownResult | None
        Returned by ``teardown``. Defaults to a successful result.
    events : list[tuple[str, Any]] | None
        Shared log of calls, so tests can check ordering across fakes
    on_provision : Callable | None
        Called with the cancellation token during ``provision``
    """

    def __init__(
        self,
        region: str = "us-east-1",
        resources: ResourceSet | None = None,
        provision_error: ProvisionError | None = None,
        teardown_result: TeardownResult | None = None,
        events: list[tuple[str, Any]] | None = None,
        on_provision: Any = None,
    ) -> None:
        self.region = region
        self.resources = resources or ResourceSet(
            instance_id="i-1", security_group_id="sg-1", public_ip="203.0.113.10"
        )
        self.provision_error = provision_error
        self.teardown_result = teardown_result
        self.events = events if events is not None else []
        self.on_provision = on_provision
        self.provision_calls: list[tuple[RunConfig, str]] = []
        self.teardown_calls: list[ResourceSet] = []
        self.teardown_tokens: list[CancellationToken] = []

    def provision(
        self, config: RunConfig, user_data: str, cancel: CancellationToken
    ) -> ResourceSet:
        self.provision_calls.append((config, user_data))
        self.events.append(("provision", self.region))

        if self.on_provision is not None:
            self.on_provision(cancel)

        if self.provision_error is not None:
            raise self.provision_error

        return ResourceSet(
            instance_id=self.resources.instance_id,
            security_group_id=self.resources.security_group_id,
            public_ip=self.resources.public_ip,
        )

    def teardown(self, resources: ResourceSet, cancel: CancellationToken) -> TeardownResult:
        self.teardown_calls.append(resources)
        self.teardown_tokens.append(cancel)
        self.events.append(("teardown", resources))

        if self.teardown_result is None:
            return TeardownResult(steps=["terminate_instance", "delete_security_group"])

        return TeardownResult(
            errors=list(self.teardown_result.errors),
            steps=list(self.teardown_result.steps),
        )


class FakeProvisionerFactory:
    """Builds one FakeProvisioner per region and remembers them.

    Parameters
    ----------
    events : list[tuple[str, Any]] | None
        Shared call log handed to every provisioner
    **defaults : Any
        Keyword arguments for every provisioner built
    """

    def __init__(self, events: list[tuple[str, Any]] | None = None, **defaults: Any) -> None:
        self.events = events if events is not None else []
        self.defaults = defaults
        self.overrides: dict[str, dict[str, Any]] = {}
        self.provisioners: list[FakeProvisioner] = []

    def configure(self, region: str, **kwargs: Any) -> None:
        """Use ``kwargs`` for provisioners built for ``region``."""
        self.overrides[region] = kwargs

    def __call__(self, region: str) -> FakeProvisioner:
        kwargs = {**self.defaults, **self.overrides.get(region, {})}
        provisioner = FakeProvisioner(region=region, events=self.events, **kwargs)
        self.provisioners.append(provisioner)
        return provisioner

    def for_region(self, region: str) -> list[FakeProvisioner]:
        return [p for p in self.provisioners if p.region == region]
