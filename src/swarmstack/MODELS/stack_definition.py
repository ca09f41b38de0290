"""
Models for the fixed stack plan: which manifests are applied, in what order,
and what happens at each stage boundary.
"""
from enum import Enum
from typing import List, Tuple
from pydantic import BaseModel, ConfigDict

from ..errors import FatalError


class PostDeployAction(str, Enum):
    """
    One-time steps that run after a stack is deployed.
    """
    PROVISION_DATABASES = "provision-databases"
    CONFIGURE_STORAGE = "configure-storage"
    PREPARE_CHATWOOT = "prepare-chatwoot"


class StackDefinition(BaseModel):
    """
    A single stack: one manifest deployed under one stack name.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    manifest: str
    depends_on: Tuple[str, ...] = ()
    settle_seconds: float = 0.0
    wait_for_ready: bool = False
    post_deploy: Tuple[PostDeployAction, ...] = ()


NETWORKS: Tuple[str, ...] = ("traefik_public", "agent_network", "general_network")

VOLUMES: Tuple[str, ...] = (
    "certificados",
    "portainer_data",
    "postgres_data",
    "redis_data",
    "rabbitmq_data",
    "minio_data",
    "evolution_v2_instances",
    "chatwoot_data",
)

CERTIFICATE_VOLUME = "certificados"

DATABASES: Tuple[str, ...] = ("chatwoot", "evolution2", "n8n_fila")

DEFAULT_STACK_PLAN: Tuple[StackDefinition, ...] = (
    StackDefinition(name="traefik", manifest="traefik.yaml", settle_seconds=8),
    StackDefinition(name="portainer", manifest="portainer.yaml",
                    depends_on=("traefik",), settle_seconds=5),
    StackDefinition(name="postgres", manifest="postgres.yaml",
                    depends_on=("traefik",), settle_seconds=5),
    StackDefinition(name="redis", manifest="redis.yaml",
                    depends_on=("traefik",), settle_seconds=5),
    StackDefinition(name="rabbitmq", manifest="rabbitmq.yaml",
                    depends_on=("traefik",), settle_seconds=5),
    StackDefinition(
        name="minio",
        manifest="minio.yaml",
        depends_on=("traefik",),
        wait_for_ready=True,
        post_deploy=(PostDeployAction.PROVISION_DATABASES, PostDeployAction.CONFIGURE_STORAGE),
    ),
    StackDefinition(
        name="chatwoot",
        manifest="chatwoot.yaml",
        depends_on=("traefik", "postgres", "redis"),
        settle_seconds=8,
        post_deploy=(PostDeployAction.PREPARE_CHATWOOT,),
    ),
    StackDefinition(name="evolution", manifest="evolution.yaml",
                    depends_on=("traefik", "postgres", "redis", "rabbitmq", "minio"),
                    settle_seconds=8),
    StackDefinition(name="n8n", manifest="n8n.yaml",
                    depends_on=("traefik", "postgres", "redis")),
)


def verify_order(plan: Tuple[StackDefinition, ...]) -> List[str]:
    """
    Checks that every stack comes after the stacks it depends on.

    The order is fixed by the plan itself; this only rejects plans that break it.

    :param plan: Stacks in deployment order.
    :return: Stack names in deployment order.
    :raises FatalError: If a dependency is missing, duplicated or placed later.
    """
    seen: List[str] = []
    for stack in plan:
        if stack.name in seen:
            raise FatalError(f"Stack {stack.name} appears twice in the plan")
        for dep in stack.depends_on:
            if dep not in seen:
                raise FatalError(f"Stack {stack.name} depends on {dep}, which is not deployed before it")
        seen.append(stack.name)
    return seen
