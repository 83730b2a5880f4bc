"""Dependency injection container for the applicant pipeline."""

from __future__ import annotations

from typing import Any

from dependency_injector import containers, providers

from .core import ChangeLogGenerator, LifecycleStateMachine, RatingAggregator, StageResolver
from .core.timeline import make_now_provider
from .repository import InMemoryCandidateRepository, JsonFileCandidateRepository
from .service import ApplicantService


class PipelineContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    now_provider = providers.Singleton(
        make_now_provider,
        timezone=config.clock.timezone,
    )

    repository = providers.Singleton(InMemoryCandidateRepository)

    state_machine = providers.Singleton(LifecycleStateMachine, now_provider=now_provider)
    changelog = providers.Singleton(ChangeLogGenerator)
    aggregator = providers.Singleton(RatingAggregator)
    stage_resolver = providers.Singleton(StageResolver)

    service = providers.Factory(
        ApplicantService,
        repository=repository,
        state_machine=state_machine,
        changelog=changelog,
        aggregator=aggregator,
        stage_resolver=stage_resolver,
        now_provider=now_provider,
    )


def create_container(*, settings: dict[str, Any] | None = None) -> PipelineContainer:
    """Instantiate container with optional overrides."""

    container = PipelineContainer()

    if not settings:
        return container

    clock_settings = settings.get("clock", {}) if isinstance(settings, dict) else {}
    if clock_settings:
        container.config.from_dict({"clock": clock_settings})

    repository_settings = settings.get("repository", {}) if isinstance(settings, dict) else {}
    store_path = repository_settings.get("path")
    if store_path:
        container.repository.override(
            providers.Singleton(JsonFileCandidateRepository, path=store_path)
        )

    return container
