from pydantic import BaseModel


class ProviderSetting(BaseModel):
    """
    Represents a single setting a provider client reads from its settings bag.

    Attributes:
        key (str): The setting name inside the provider bag (e.g. "api_key").
        val_type (str): The expected value type ("string", "number", "bool", "list").
        default (str | int | float | bool | list | None): Value used when the setting is absent.
        required (bool): If True, a missing or empty value is a configuration error.
    """

    key: str
    val_type: str = "string"
    default: str | int | float | bool | list | None = None
    required: bool = True
