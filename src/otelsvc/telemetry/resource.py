"""Resource descriptor construction."""

from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource

from otelsvc.errors import ResourceBuildError
from otelsvc.telemetry.models import TelemetryConfig

DEPLOYMENT_ENVIRONMENT = "deployment.environment"


def build_resource(config: TelemetryConfig) -> Resource:
    """Build the resource attached to every exported span and metric.

    Extra ``resource_attributes`` are applied first so they can never
    override the service identity.

    Raises:
        ResourceBuildError: If the service name is empty
    """
    if not config.service_name.strip():
        raise ResourceBuildError(
            "service name must not be empty",
            details={"service_version": config.service_version},
        )

    attributes: dict[str, str] = dict(config.resource_attributes)
    if config.deployment_environment:
        attributes[DEPLOYMENT_ENVIRONMENT] = config.deployment_environment
    attributes[SERVICE_NAME] = config.service_name
    attributes[SERVICE_VERSION] = config.service_version

    return Resource.create(attributes)
