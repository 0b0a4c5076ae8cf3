import base64
import logging
import time
from typing import Any, Dict, List, Optional

import bcrypt
import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from listing_engine.exceptions import CollaboratorError, TransportError
from listing_engine.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class RateLimitedError(CollaboratorError):
    """네이버 API 429 응답"""


class SmartStoreClient:
    """
    네이버 커머스 API (스마트스토어) 클라이언트

    카테고리/원산지 코드 조회, 이미지 호스팅, 상품 등록 전송을 담당한다.
    """
    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings or default_settings
        self.client_id = client_id if client_id is not None else self.settings.naver_client_id
        self.client_secret = client_secret if client_secret is not None else self.settings.naver_client_secret
        self.base_url = self.settings.naver_api_base_url.rstrip("/")
        self.token_url = self.settings.naver_token_url
        self.timeout = self.settings.naver_request_timeout
        self.session = session or requests.Session()

        self.access_token: Optional[str] = None
        self.expires_at: float = 0

    def _get_access_token(self) -> str:
        """
        OAuth2 Access Token을 발급받거나 갱신합니다.
        """
        if self.access_token and time.time() < self.expires_at - 60:
            return self.access_token

        timestamp = str(int(time.time() * 1000))

        # {client_id}_{timestamp}를 client_secret(salt)로 bcrypt 해싱 후 base64
        password = f"{self.client_id}_{timestamp}"
        hashed = bcrypt.hashpw(password.encode("utf-8"), self.client_secret.encode("utf-8"))
        signature = base64.b64encode(hashed).decode("utf-8")

        payload = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "timestamp": timestamp,
            "client_secret_sign": signature,
            "type": "SELF",
        }

        try:
            response = self.session.post(self.token_url, data=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"네이버 토큰 발급 요청 실패: {e}")
            raise CollaboratorError(f"네이버 토큰 발급 요청 실패: {e}", operation="token") from e

        if response.status_code != 200:
            logger.error(f"네이버 토큰 발급 실패 ({response.status_code}): {response.text}")
            raise CollaboratorError(
                "네이버 토큰 발급 실패",
                operation="token",
                status_code=response.status_code,
                response_body=response.text,
            )

        data = response.json()
        self.access_token = data.get("access_token")
        self.expires_at = time.time() + data.get("expires_in", 3600)
        logger.info("네이버 스마트스토어 access token 갱신 완료")
        return self.access_token

    def _get_headers(self, multipart: bool = False) -> Dict[str, str]:
        token = self._get_access_token()
        headers = {
            "Authorization": f"Bearer {token}"
        }
        if not multipart:
            headers["Content-Type"] = "application/json"
        return headers

    def _get_json(self, path: str, operation: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, headers=self._get_headers(), params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise CollaboratorError(f"{operation} 요청 실패: {e}", operation=operation) from e
        if response.status_code != 200:
            logger.error(f"SmartStore {operation} error: {response.status_code} {response.text}")
            raise CollaboratorError(
                f"{operation} 응답 오류",
                operation=operation,
                status_code=response.status_code,
                response_body=response.text,
            )
        return response.json()

    def fetch_category_tree(self) -> List[Dict[str, Any]]:
        """전체 카테고리 조회 (wholeCategoryName, last 포함 노드 목록)"""
        data = self._get_json("/v1/categories", "fetch_category_tree")
        if isinstance(data, dict):
            data = data.get("contents") or data.get("children") or []
        logger.info(f"카테고리 {len(data)}건 조회")
        return data

    def fetch_origin_code_table(self) -> List[Dict[str, str]]:
        """원산지 코드 목록 조회, [{code, name}] 형태로 반환"""
        data = self._get_json("/v1/product-origin-areas", "fetch_origin_code_table")
        if isinstance(data, dict):
            data = data.get("originAreaCodeNames") or data.get("contents") or []
        rows = []
        for item in data:
            code = item.get("code") or item.get("originAreaCode")
            name = item.get("name") or item.get("codeName") or item.get("originAreaName")
            if code and name:
                rows.append({"code": str(code), "name": str(name)})
        logger.info(f"원산지 코드 {len(rows)}건 조회")
        return rows

    def host_image(self, image_url: str) -> str:
        """이미지를 네이버 서버로 업로드하여 네이버 전용 URL 획득"""
        content, content_type = self._load_image(image_url)
        return self._upload_image_with_retry(image_url, content, content_type)

    def _load_image(self, image_url: str) -> tuple[bytes, str]:
        try:
            res = self.session.get(image_url, timeout=self.timeout)
        except requests.RequestException as e:
            raise CollaboratorError(f"이미지 다운로드 실패: {image_url} ({e})", operation="host_image") from e
        if res.status_code != 200:
            raise CollaboratorError(
                f"이미지 다운로드 실패: {image_url}",
                operation="host_image",
                status_code=res.status_code,
            )
        return res.content, res.headers.get("Content-Type", "image/jpeg")

    def _upload_image_with_retry(self, image_url: str, content: bytes, content_type: str) -> str:
        uploader = retry(
            stop=stop_after_attempt(self.settings.naver_image_upload_retry_count),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            retry=retry_if_exception_type(RateLimitedError),
            reraise=True,
            before_sleep=lambda retry_state: logger.warning(
                f"네이버 이미지 업로드 429, 재시도 중... ({retry_state.attempt_number}회째): {image_url}"
            ),
        )(self._upload_image)
        return uploader(image_url, content, content_type)

    def _upload_image(self, image_url: str, content: bytes, content_type: str) -> str:
        ext = "jpg"
        if "png" in content_type:
            ext = "png"
        elif "gif" in content_type:
            ext = "gif"

        url = f"{self.base_url}/v1/product-images/upload"
        files = {"imageFiles": (f"image.{ext}", content, content_type)}
        try:
            response = self.session.post(url, headers=self._get_headers(multipart=True), files=files, timeout=self.timeout)
        except requests.RequestException as e:
            raise CollaboratorError(f"이미지 업로드 요청 실패: {image_url} ({e})", operation="host_image") from e

        if response.status_code == 429:
            raise RateLimitedError("네이버 Rate Limit (429)", operation="host_image", status_code=429)
        if response.status_code != 200:
            logger.error(f"네이버 이미지 업로드 실패 {image_url}: {response.status_code} - {response.text}")
            raise CollaboratorError(
                f"이미지 업로드 실패: {image_url}",
                operation="host_image",
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            results = response.json().get("images", [])
        except ValueError as e:
            raise CollaboratorError(
                f"이미지 업로드 응답 해석 실패: {image_url}",
                operation="host_image",
                status_code=response.status_code,
                response_body=response.text,
            ) from e
        hosted = results[0].get("url") if results else None
        if not hosted:
            raise CollaboratorError(f"이미지 업로드 응답에 URL 없음: {image_url}", operation="host_image")
        logger.info(f"네이버 이미지 업로드 완료: {hosted}")
        return hosted

    def _post_payload(self, path: str, payload: Dict[str, Any], operation: str) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.post(url, headers=self._get_headers(), json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"SmartStore {operation} error: {e}")
            raise TransportError(f"상품 등록 요청 전송 실패: {e}", operation=operation) from e

        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}
        if response.status_code not in (200, 201):
            logger.error(f"SmartStore {operation} 실패: {response.status_code} {response.text}")
            raise TransportError(
                body.get("message") or f"상품 등록 실패 ({response.status_code})",
                operation=operation,
                status_code=response.status_code,
                response_body=response.text,
                invalid_inputs=body.get("invalidInputs"),
            )
        return body

    def submit(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """단일 상품 등록"""
        return self._post_payload("/v2/products", payload, "submit")

    def submit_group(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """그룹상품 등록"""
        return self._post_payload("/v2/standard-group-products", payload, "submit_group")
