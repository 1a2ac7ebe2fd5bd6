from rest_framework.exceptions import APIException
from rest_framework import status
from datetime import datetime, timezone


class ConsoleException(APIException):
    """콘솔 백엔드 기본 예외 클래스"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'ERR_500'
    default_detail = '서버 내부 오류가 발생했습니다.'

    def __init__(self, code=None, message=None, detail=None, field=None, status_code=None):
        super().__init__(detail=message or self.default_detail)
        self.code = code or self.default_code
        self.message = message or self.default_detail
        self.detail_info = detail
        self.field = field
        if status_code:
            self.status_code = status_code

    def get_full_details(self):
        error_detail = {
            'code': self.code,
            'message': self.message,
            'timestamp': datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ'),
        }
        if self.detail_info:
            error_detail['detail'] = self.detail_info
        if self.field:
            error_detail['field'] = self.field
        return {'error': error_detail}


class PermissionDeniedException(ConsoleException):
    """권한 거부 예외"""
    status_code = status.HTTP_403_FORBIDDEN
    default_code = 'ERR_002'
    default_detail = '해당 작업을 수행할 권한이 없습니다.'


class ValidationException(ConsoleException):
    """유효성 검증 실패 예외"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'ERR_101'
    default_detail = '입력값이 올바르지 않습니다.'


class ConflictException(ConsoleException):
    """충돌 예외 (중복 데이터)"""
    status_code = status.HTTP_409_CONFLICT
    default_code = 'ERR_301'
    default_detail = '데이터 충돌이 발생했습니다.'


class DuplicateMenuException(ConflictException):
    """메뉴 카탈로그에 같은 ID가 두 번 이상 등장한 경우"""
    default_code = 'ERR_302'
    default_detail = '메뉴 카탈로그에 중복된 메뉴 ID가 있습니다.'
