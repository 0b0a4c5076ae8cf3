"""스마트스토어 상품 등록 API 고정 값"""

# 판매/전시 상태
SALE_STATUS_SALE = "SALE"
DISPLAY_STATUS_ON = "ON"
DISPLAY_STATUS_SUSPENSION = "SUSPENSION"
DISPLAY_STATUS_WAIT = "WAIT"

SALE_STATUSES = (SALE_STATUS_SALE,)
DISPLAY_STATUSES = (DISPLAY_STATUS_ON, DISPLAY_STATUS_SUSPENSION, DISPLAY_STATUS_WAIT)

# 배송
DELIVERY_TYPE_DELIVERY = "DELIVERY"
DELIVERY_TYPE_DIRECT = "DIRECT"
DELIVERY_TYPE_QUICK = "QUICK"
DELIVERY_TYPES = (DELIVERY_TYPE_DELIVERY, DELIVERY_TYPE_DIRECT, DELIVERY_TYPE_QUICK)
DELIVERY_ATTRIBUTE_NORMAL = "NORMAL"

COURIER_HANJIN = "HANJIN"
COURIER_CJ = "CJGLS"
COURIER_LOGEN = "KGB"
COURIER_LOTTE = "HYUNDAI"
COURIER_EPOST = "EPOST"
COURIER_CODES = (COURIER_HANJIN, COURIER_CJ, COURIER_LOGEN, COURIER_LOTTE, COURIER_EPOST)

FEE_TYPE_FREE = "FREE"
FEE_TYPE_PAID = "PAID"
FEE_TYPE_CONDITIONAL_FREE = "CONDITIONAL_FREE"
FEE_PAY_PREPAID = "PREPAID"

# 과세/판매 유형
TAX_TYPE_TAX = "TAX"
TAX_TYPE_TAX_FREE = "TAX_FREE"
TAX_TYPE_SMALL = "SMALL"
TAX_TYPES = (TAX_TYPE_TAX, TAX_TYPE_TAX_FREE, TAX_TYPE_SMALL)
SALE_TYPE_NEW = "NEW"

# 원산지 코드
# 00 국산, 01 원양산, 02 수입산, 03 기타(상세설명 표시), 04 기타(직접입력), 05 표기 의무 없음
ORIGIN_CODE_DOMESTIC = "00"
ORIGIN_CODE_DEEP_SEA = "01"
ORIGIN_CODE_IMPORT = "02"
ORIGIN_CODE_ETC_DETAIL = "03"
ORIGIN_CODE_ETC_DIRECT = "04"
ORIGIN_CODE_NOT_REQUIRED = "05"
DOMESTIC_ORIGIN_KEYWORDS = ("국내", "한국", "국산")
MARINE_ORIGIN_FIELDS = ("oceanName", "oceanType", "oceanArea")

PRODUCT_INFO_NOTICE_ETC = "ETC"

# 이미지
ALLOWED_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".bmp")
MAX_IMAGE_COUNT = 20

# 판매 기간 포맷 (yyyy-MM-ddTHH:mm:ss.SSS+09:00)
KST_TIMEZONE = "Asia/Seoul"

# 플랫폼
PLATFORM_NAVER = "naver"
PLATFORM_COUPANG = "coupang"
PLATFORM_11ST = "11st"
SUPPORTED_PLATFORMS = (PLATFORM_NAVER, PLATFORM_COUPANG, PLATFORM_11ST)
