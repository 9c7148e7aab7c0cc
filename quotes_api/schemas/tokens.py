from quotes_api.schemas.common import ApiResponse


class LogoutResponse(ApiResponse):
    pass
