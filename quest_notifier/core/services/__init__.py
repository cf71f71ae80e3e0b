from quest_notifier.core.services.container import ServiceContainer, with_container

__all__ = ["ServiceContainer", "with_container"]
