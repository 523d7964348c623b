"""HTTP adaptor (FastAPI)."""

from rowgate.web.router import build_router, error_response, query_params_to_dict

__all__ = ["build_router", "error_response", "query_params_to_dict"]
