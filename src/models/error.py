"""
Error response model
"""

from models.base import CamelModel


class ErrorResponse(CamelModel):
    """Body of every error response"""
    error_code: int
    error_description: str
    name_method: str
    uri: str
