from infrastructure.preferences.yaml_view_preferences import InMemoryViewPreferences, YamlViewPreferences

__all__ = ["InMemoryViewPreferences", "YamlViewPreferences"]
