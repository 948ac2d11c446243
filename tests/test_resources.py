from fortanode.config import ResourcesConfig
from fortanode.resources import (
    DEFAULT_CPU_QUOTA_PER_AGENT,
    DEFAULT_MEMORY_PER_AGENT,
    AgentResourceLimits,
    get_agent_resource_limits,
)


def test_disabled_limits_are_zero():
    cfg = ResourcesConfig(disable_agent_limits=True, agent_max_cpus=2.0, agent_max_memory_mib=500)
    assert get_agent_resource_limits(cfg) == AgentResourceLimits(cpu_quota=0, memory=0)


def test_defaults_when_unset():
    limits = get_agent_resource_limits(ResourcesConfig())
    assert limits.cpu_quota == 20000
    assert limits.memory == 1048580000


def test_cpu_override():
    limits = get_agent_resource_limits(ResourcesConfig(agent_max_cpus=1.0))
    assert limits.cpu_quota == 100000
    assert limits.memory == DEFAULT_MEMORY_PER_AGENT


def test_memory_override():
    limits = get_agent_resource_limits(ResourcesConfig(agent_max_memory_mib=1))
    assert limits.memory == 104858
    assert limits.cpu_quota == DEFAULT_CPU_QUOTA_PER_AGENT


def test_memory_scales_linearly():
    one = get_agent_resource_limits(ResourcesConfig(agent_max_memory_mib=1)).memory
    many = get_agent_resource_limits(ResourcesConfig(agent_max_memory_mib=300)).memory
    assert many == 300 * one


def test_non_positive_values_use_defaults():
    limits = get_agent_resource_limits(
        ResourcesConfig(agent_max_cpus=-1.0, agent_max_memory_mib=-5)
    )
    assert limits == AgentResourceLimits(
        cpu_quota=DEFAULT_CPU_QUOTA_PER_AGENT, memory=DEFAULT_MEMORY_PER_AGENT
    )