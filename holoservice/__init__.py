"""
holoservice - Chain instance management

Directory-backed registry of installed chains for an agent-centric
distributed application platform:
- Ed25519 agent identity bootstrap per service root
- DNA descriptors with lineage (UUID + progenitor) rules
- Fork/join cloning of installed chains
- Layered runtime config (defaults, system.conf, overrides)
- Versioned scaffold templates

Components:
- agent.py: Agent identity and key persistence
- config.py: On-disk names and ServiceConfig
- resolver.py: Runtime config resolution
- dna.py: DNA descriptor model and hashing
- encoding.py: JSON / TOML / YAML serializers
- scaffold.py: Scaffold template model and materialization
- chain.py: ChainInstance
- service.py: Service (init, load, gen, clone, list)
- lineage.py: Fork / Join clone policies
"""

__version__ = "0.1.0"

# Lazy imports - only import what's needed when used
def __getattr__(name):
    if name in ("Service", "init", "load_service", "is_initialized", "DBPolicy"):
        from . import service
        return getattr(service, name)
    elif name in ("AgentIdentity", "load_agent", "save_agent", "new_agent"):
        from . import agent
        return getattr(agent, name)
    elif name == "ServiceConfig":
        from .config import ServiceConfig
        return ServiceConfig
    elif name == "ChainInstance":
        from .chain import ChainInstance
        return ChainInstance
    elif name in ("ChainConfig", "make_config"):
        from . import resolver
        return getattr(resolver, name)
    elif name == "DNA":
        from .dna import DNA
        return DNA
    elif name in ("Fork", "Join", "fork_for"):
        from . import lineage
        return getattr(lineage, name)
    elif name in ("ScaffoldTemplate", "parse_scaffold"):
        from . import scaffold
        return getattr(scaffold, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    "__version__",
    # Service
    "Service",
    "init",
    "load_service",
    "is_initialized",
    "DBPolicy",
    # Agent
    "AgentIdentity",
    "load_agent",
    "save_agent",
    "new_agent",
    # Config
    "ServiceConfig",
    "ChainConfig",
    "make_config",
    # Chain
    "ChainInstance",
    "DNA",
    "Fork",
    "Join",
    "fork_for",
    # Scaffold
    "ScaffoldTemplate",
    "parse_scaffold",
]
