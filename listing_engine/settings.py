from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # 네이버 커머스 API
    naver_client_id: str = ""
    naver_client_secret: str = ""
    naver_api_base_url: str = "https://api.commerce.naver.com/external"
    naver_token_url: str = "https://api.commerce.naver.com/external/v1/oauth2/token"
    naver_request_timeout: float = 15.0
    naver_image_upload_retry_count: int = 5 # 429 발생 시 tenacity 재시도 횟수

    # 카테고리 매칭 정책
    category_accept_low_confidence: bool = True # 키워드 기반(e/f 단계) 매칭 허용 여부

    # 플레이스홀더 기본값 (운영자가 .env로 실제 값 지정)
    listing_default_importer: str = "수입사명"
    listing_default_manufacturer: str = "제조사명"
    listing_after_service_phone: str = "1588-0000"
    listing_after_service_guide: str = "A/S는 구매 후 7일 이내에 연락 주시기 바랍니다."
    listing_notice_content: str = "상품상세참조"
    listing_default_origin_content: str = "국내산"

    # 배송 기본값
    delivery_default_company: str = "CJGLS"
    delivery_default_fee: int = 4500
    delivery_return_fee: int = 0
    delivery_exchange_fee: int = 0

    # 인증 제외 표시를 항상 보낼지 여부 (감지 누락 대비)
    compliance_always_emit_exclusion: bool = True

    image_max_count: int = 10
    sale_period_years: int = 1

    @field_validator("naver_api_base_url", "naver_token_url")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL은 'http://' 또는 'https://'로 시작해야 합니다.")
        return v

    @field_validator("delivery_default_fee", "delivery_return_fee", "delivery_exchange_fee")
    @classmethod
    def validate_non_negative_fee(cls, v: int) -> int:
        if v < 0:
            raise ValueError("배송비는 0 이상이어야 합니다.")
        return v

    @field_validator("image_max_count")
    @classmethod
    def validate_image_max_count(cls, v: int) -> int:
        if not 1 <= v <= 20:
            raise ValueError("image_max_count는 1에서 20 사이여야 합니다.")
        return v

    @field_validator("sale_period_years", "naver_image_upload_retry_count")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("1 이상이어야 합니다.")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", case_sensitive=False)


settings = Settings()
