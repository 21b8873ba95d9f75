from fastapi import Header, HTTPException, Request

from studykit.services.llm.providers import ProviderRegistry


def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """The caller id arrives already resolved by the upstream auth layer."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id.strip()


def get_providers(request: Request) -> ProviderRegistry:
    return request.app.state.providers
