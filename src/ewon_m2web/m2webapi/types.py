"""Raw API response types for the M2Web REST API.

Pydantic models mirroring the JSON returned by the API. Field names are
snake_case in Python and camelCase on the wire.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EwonStatus(str, Enum):
    """Connection status of an eWON to the Talk2M infrastructure."""

    ONLINE = "online"
    OFFLINE = "offline"


class Ewon(BaseModel):
    """A single eWON as registered under the corporate account.

    Instances are read-only snapshots of the API response.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Identification
    id: int
    name: str
    encoded_name: str = Field(alias="encodedName")

    # Connectivity
    status: EwonStatus
    m2web_server: str = Field(alias="m2webServer")

    # User data
    description: str
    custom_attributes: list[str] = Field(alias="customAttributes")

    lan_devices: list[str] = Field(default_factory=list, alias="lanDevices")
    ewon_services: list[str] = Field(default_factory=list, alias="ewonServices")

    @property
    def is_online(self) -> bool:
        return self.status is EwonStatus.ONLINE


class ApiResponse(BaseModel):
    """Envelope shared by every M2Web API response.

    Only one of ``ewons``, ``ewon`` or ``t2msession`` is set on a successful
    response, depending on the endpoint. ``code`` and ``message`` are set
    when ``success`` is false.
    """

    success: bool
    code: int | None = None
    message: str = ""

    ewons: list[Ewon] | None = None
    ewon: Ewon | None = None
    t2msession: str | None = None
