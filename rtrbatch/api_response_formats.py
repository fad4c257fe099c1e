from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict


class SessionToken(BaseModel):
    """Bearer token obtained from the OAuth2 client-credentials exchange."""
    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"

    @property
    def headers(self) -> Dict[str, str]:
        """Request headers for every authenticated call."""
        return {
            "Authorization": f"Bearer {self.access_token}",
            "token_type": "bearer",
            "Content-Type": "application/json",
        }


class DeviceQueryResponse(BaseModel):
    """Response from the device query endpoint."""
    resources: Optional[List[str]] = None


class BatchInitResponse(BaseModel):
    """Response from the batch session init endpoint."""
    batch_id: str
