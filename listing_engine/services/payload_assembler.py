"""
스마트스토어 상품 등록 payload 조립.

필수 항목 검증 -> 카테고리/인증/원산지/상태값 해석 -> 이미지 호스팅 -> 중첩 필드 구성 순서로 진행하며,
중간에 실패하면 payload를 만들지 않고 ListingValidationError를 던진다.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import pytz

from listing_engine import constants
from listing_engine.exceptions import (
    CollaboratorError,
    DegradedModeWarning,
    FieldError,
    ListingValidationError,
)
from listing_engine.schemas.listing import (
    CategoryMatch,
    ComplianceFlags,
    DeliveryInput,
    GroupListingInput,
    ListingInput,
    OriginInfo,
    VariantInput,
)
from listing_engine.services.category_resolver import CategoryResolver, match_warning
from listing_engine.services.compliance import ComplianceAdvisor
from listing_engine.services.enum_normalizer import (
    normalize_courier_code,
    normalize_delivery_type,
    normalize_display_status,
    normalize_sale_status,
    normalize_tax_type,
)
from listing_engine.services.origin_resolver import OriginResolver
from listing_engine.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

ImageHost = Callable[[str], str]


@dataclass
class AssemblyReport:
    payload: Dict[str, Any]
    warnings: List[DegradedModeWarning] = field(default_factory=list)
    category: Optional[CategoryMatch] = None
    compliance: Optional[ComplianceFlags] = None


@dataclass
class _Resolved:
    category: CategoryMatch
    category_path: str
    compliance: ComplianceFlags


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class PayloadAssembler:
    def __init__(
        self,
        resolver: CategoryResolver,
        compliance: Optional[ComplianceAdvisor] = None,
        origin_resolver: Optional[OriginResolver] = None,
        image_host: Optional[ImageHost] = None,
        settings: Optional[Settings] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or default_settings
        self.resolver = resolver
        self.compliance = compliance or ComplianceAdvisor(settings=self.settings)
        self.origin_resolver = origin_resolver or OriginResolver(compliance=self.compliance, settings=self.settings)
        self.image_host = image_host
        self._now = now or (lambda: datetime.now(pytz.timezone(constants.KST_TIMEZONE)))

    # ------------------------------------------------------------------
    # 단일 상품
    # ------------------------------------------------------------------
    def assemble(self, listing: ListingInput) -> Dict[str, Any]:
        return self.assemble_with_report(listing).payload

    def assemble_with_report(self, listing: ListingInput) -> AssemblyReport:
        warnings: List[DegradedModeWarning] = []

        errors = self._validate_listing(listing)
        if errors:
            raise ListingValidationError.from_errors(errors, row_number=listing.row_number)

        resolved = self._resolve_category(listing.category, warnings)
        origin = self.origin_resolver.resolve(
            listing.origin_area,
            resolved.category_path,
            extra=listing.origin_extra,
            importer_name=listing.importer_name,
            warnings=warnings,
        )
        images = self._host_images(listing.images, "images")

        origin_product: Dict[str, Any] = {
            "statusType": normalize_sale_status(listing.sale_status, warnings),
            "saleType": constants.SALE_TYPE_NEW,
            "leafCategoryId": resolved.category.category_id,
            "name": listing.name.strip(),
            "detailContent": listing.detail_content,
            "images": self._build_images(images),
            "salePrice": listing.sale_price,
            "stockQuantity": listing.stock_quantity,
            "deliveryInfo": self._build_delivery_info(listing.delivery, warnings),
            "detailAttribute": self._build_detail_attribute(
                name=listing.name.strip(),
                model_name=listing.model_name,
                brand_name=listing.brand_name,
                manufacturer=listing.manufacturer,
                tax_type=normalize_tax_type(listing.tax_type, warnings),
                after_service_phone=listing.after_service_phone,
                after_service_guide=listing.after_service_guide,
                origin=origin,
                flags=resolved.compliance,
            ),
        }
        origin_product.update(self._sale_period())

        payload = {
            "originProduct": origin_product,
            "smartstoreChannelProduct": {
                "naverShoppingRegistration": listing.naver_shopping_registration,
                "channelProductDisplayStatusType": normalize_display_status(listing.display_status, warnings),
            },
        }
        logger.info(
            f"상품 payload 조립 완료: {listing.name} (카테고리 {resolved.category.category_id}, "
            f"원산지 {origin.code}, 경고 {len(warnings)}건)"
        )
        return AssemblyReport(payload=payload, warnings=warnings, category=resolved.category, compliance=resolved.compliance)

    # ------------------------------------------------------------------
    # 그룹상품
    # ------------------------------------------------------------------
    def assemble_group(self, group: GroupListingInput) -> Dict[str, Any]:
        return self.assemble_group_with_report(group).payload

    def assemble_group_with_report(self, group: GroupListingInput) -> AssemblyReport:
        warnings: List[DegradedModeWarning] = []

        errors = self._validate_group(group)
        if errors:
            raise ListingValidationError.from_errors(errors, row_number=group.row_number)

        resolved = self._resolve_category(group.category, warnings)
        common_detail = self._common_detail_content(group)
        name = group.name.strip()

        specific_products = []
        for position, variant in enumerate(group.variants, start=1):
            specific_products.append(
                self._build_specific_product(group, variant, position, resolved, warnings)
            )

        after_service = self._build_after_service(group.after_service_phone, group.after_service_guide)
        group_product: Dict[str, Any] = {
            "leafCategoryId": resolved.category.category_id,
            "name": name,
            "guideId": group.guide_id,
            "saleType": constants.SALE_TYPE_NEW,
            "taxType": normalize_tax_type(group.tax_type, warnings),
            "minorPurchasable": False,
            "itselfProductionProductYn": False,
            "productInfoProvidedNotice": self._build_notice(
                name, group.model_name, group.manufacturer, after_service["afterServiceTelephoneNumber"]
            ),
            "afterServiceInfo": after_service,
            "commonDetailContent": common_detail,
            "specificProducts": specific_products,
            "smartstoreGroupChannel": {},
        }
        if group.brand_name:
            group_product["brandName"] = group.brand_name
        if group.manufacturer:
            group_product["manufacturerName"] = group.manufacturer

        logger.info(f"그룹상품 payload 조립 완료: {name} (옵션 {len(specific_products)}개, 경고 {len(warnings)}건)")
        return AssemblyReport(
            payload={"groupProduct": group_product},
            warnings=warnings,
            category=resolved.category,
            compliance=resolved.compliance,
        )

    def _build_specific_product(
        self,
        group: GroupListingInput,
        variant: VariantInput,
        position: int,
        resolved: _Resolved,
        warnings: List[DegradedModeWarning],
    ) -> Dict[str, Any]:
        prefix = f"specificProducts[{position}]"
        origin = self.origin_resolver.resolve(
            variant.origin_area or group.origin_area,
            resolved.category_path,
            extra=variant.origin_extra,
            importer_name=variant.importer_name or group.importer_name,
            warnings=warnings,
        )
        images = self._host_images(variant.images, f"{prefix}.images")

        options = []
        for option_name, value in variant.options.items():
            option: Dict[str, Any] = {"valueName": value}
            if option_name in variant.option_ids:
                option["optionId"] = variant.option_ids[option_name]
            options.append(option)

        detail_attribute: Dict[str, Any] = {"originAreaInfo": origin.to_payload()}
        detail_attribute.update(self.compliance.build_certification_block(resolved.compliance))

        product: Dict[str, Any] = {
            "standardPurchaseOptions": options,
            "salePrice": variant.sale_price,
            "normalPrice": variant.normal_price if variant.normal_price is not None else variant.sale_price,
            "stockQuantity": variant.stock_quantity,
            "images": self._build_images(images),
            "deliveryInfo": self._build_delivery_info(variant.delivery or group.delivery, warnings),
            "detailAttribute": detail_attribute,
        }
        if not _is_blank(variant.detail_content):
            product["detailContent"] = variant.detail_content
        product.update(self._sale_period())

        display_status = normalize_display_status(variant.display_status, warnings)
        if group.window_channel is not None:
            window: Dict[str, Any] = {
                "channelNo": group.window_channel.channel_no,
                "best": group.window_channel.best,
            }
            if group.window_channel.bbs_seq is not None:
                window["bbsSeq"] = group.window_channel.bbs_seq
            product["windowChannelProduct"] = window
        else:
            channel: Dict[str, Any] = {
                "naverShoppingRegistration": False,
                "channelProductDisplayStatusType": display_status,
            }
            if group.bbs_seq is not None:
                channel["bbsSeq"] = group.bbs_seq
            product["smartstoreChannelProduct"] = channel
        return product

    @staticmethod
    def _common_detail_content(group: GroupListingInput) -> Optional[str]:
        first = group.variants[0].detail_content if group.variants else None
        if not _is_blank(first):
            return first
        return group.common_detail_content

    # ------------------------------------------------------------------
    # 검증
    # ------------------------------------------------------------------
    def _validate_listing(self, listing: ListingInput) -> List[FieldError]:
        errors: List[FieldError] = []
        if _is_blank(listing.name):
            errors.append(FieldError("name", "상품명은 필수입니다."))
        if _is_blank(listing.category):
            errors.append(FieldError("category", "카테고리는 필수입니다."))
        errors.extend(self._validate_price_stock(listing.sale_price, listing.stock_quantity, ""))
        errors.extend(self._validate_images(listing.images, "images"))
        if _is_blank(listing.detail_content):
            errors.append(FieldError("detailContent", "상세설명은 필수입니다."))
        return errors

    def _validate_group(self, group: GroupListingInput) -> List[FieldError]:
        errors: List[FieldError] = []
        if _is_blank(group.name):
            errors.append(FieldError("name", "그룹상품명은 필수입니다."))
        if _is_blank(group.category):
            errors.append(FieldError("category", "카테고리는 필수입니다."))
        if group.guide_id is None:
            errors.append(FieldError("guideId", "그룹상품 가이드 ID는 필수입니다."))
        if not group.variants:
            errors.append(FieldError("specificProducts", "옵션 상품이 최소 1개 필요합니다."))

        for position, variant in enumerate(group.variants, start=1):
            prefix = f"specificProducts[{position}]"
            for error in self._validate_price_stock(variant.sale_price, variant.stock_quantity, f"{prefix}."):
                errors.append(FieldError(error.field, f"{position}번째 옵션 상품: {error.message}"))
            for error in self._validate_images(variant.images, f"{prefix}.images"):
                errors.append(FieldError(error.field, f"{position}번째 옵션 상품: {error.message}"))

        if group.variants and _is_blank(self._common_detail_content(group)):
            errors.append(FieldError("commonDetailContent", "공통 상세설명은 필수입니다."))
        return errors

    @staticmethod
    def _validate_price_stock(sale_price: Optional[int], stock_quantity: Optional[int], prefix: str) -> List[FieldError]:
        errors = []
        if sale_price is None:
            errors.append(FieldError(f"{prefix}salePrice", "판매가는 필수입니다."))
        elif sale_price <= 0:
            errors.append(FieldError(f"{prefix}salePrice", "판매가는 0보다 커야 합니다."))
        if stock_quantity is None:
            errors.append(FieldError(f"{prefix}stockQuantity", "재고수량은 필수입니다."))
        elif stock_quantity < 0:
            errors.append(FieldError(f"{prefix}stockQuantity", "재고수량은 0 이상이어야 합니다."))
        return errors

    @staticmethod
    def _validate_images(images: List[str], field_name: str) -> List[FieldError]:
        urls = [u.strip() for u in images or [] if u and u.strip()]
        if not urls:
            return [FieldError(field_name, "대표 이미지는 최소 1개 필요합니다.")]
        errors = []
        for i, url in enumerate(urls):
            if not url.startswith(("http://", "https://")):
                errors.append(FieldError(f"{field_name}[{i}]", f"이미지 URL은 http:// 또는 https://로 시작해야 합니다: {url}"))
            elif not url.lower().split("?")[0].endswith(constants.ALLOWED_IMAGE_EXTENSIONS):
                logger.warning(f"이미지 확장자를 확인할 수 없습니다 (jpg, png, gif, bmp 권장): {url}")
        return errors

    # ------------------------------------------------------------------
    # 해석
    # ------------------------------------------------------------------
    def _resolve_category(self, category: str, warnings: List[DegradedModeWarning]) -> _Resolved:
        text = category.strip()
        match = self.resolver.resolve_or_raise(text)

        index_warning = self.resolver.index.degraded_warning()
        if index_warning is not None:
            warnings.append(index_warning)
        weak = match_warning(match, text)
        if weak is not None:
            warnings.append(weak)

        # 숫자 ID로 들어온 경우 경로 키워드 판단은 하지 않는다
        category_path = match.matched_key or text
        flags = self.compliance.evaluate(category_path, match.category_id)
        return _Resolved(category=match, category_path=category_path, compliance=flags)

    def _host_images(self, images: List[str], field_name: str) -> List[str]:
        urls = [u.strip() for u in images if u and u.strip()][: self.settings.image_max_count]
        if self.image_host is None:
            return urls
        hosted = []
        for i, url in enumerate(urls):
            try:
                hosted.append(self.image_host(url))
            except Exception as e:
                reason = e.message if isinstance(e, CollaboratorError) else f"{type(e).__name__}: {e}"
                logger.error(f"이미지 호스팅 실패: {url} ({reason})")
                raise ListingValidationError(
                    f"이미지를 업로드할 수 없습니다: {url} ({reason})",
                    field=f"{field_name}[{i}]",
                ) from e
        return hosted

    # ------------------------------------------------------------------
    # 중첩 필드 구성
    # ------------------------------------------------------------------
    @staticmethod
    def _build_images(urls: List[str]) -> Dict[str, Any]:
        return {
            "representativeImage": {"url": urls[0]},
            "optionalImages": [{"url": u} for u in urls[1:constants.MAX_IMAGE_COUNT]],
        }

    def _sale_period(self) -> Dict[str, str]:
        start = self._now()
        years = self.settings.sale_period_years
        try:
            end = start.replace(year=start.year + years)
        except ValueError:
            # 2월 29일
            end = start.replace(year=start.year + years, day=28)
        return {
            "saleStartDate": start.isoformat(timespec="milliseconds"),
            "saleEndDate": end.isoformat(timespec="milliseconds"),
        }

    def _build_delivery_info(self, delivery: Optional[DeliveryInput], warnings: List[DegradedModeWarning]) -> Dict[str, Any]:
        delivery = delivery or DeliveryInput()
        # 배송방법 칸에 택배사명을 적는 경우가 많아 택배사 판단에도 사용한다
        delivery_type = normalize_delivery_type(delivery.delivery_type, warnings)

        info: Dict[str, Any] = {
            "deliveryType": delivery_type,
            "deliveryAttributeType": constants.DELIVERY_ATTRIBUTE_NORMAL,
        }
        if delivery_type == constants.DELIVERY_TYPE_DELIVERY:
            info["deliveryCompany"] = normalize_courier_code(
                delivery.delivery_company or delivery.delivery_type,
                default=self.settings.delivery_default_company,
            )

        if delivery.delivery_fee is not None and delivery.delivery_fee > 0:
            fee: Dict[str, Any] = {
                "deliveryFeeType": constants.FEE_TYPE_CONDITIONAL_FREE,
                "baseFee": delivery.delivery_fee,
                "deliveryFeePayType": constants.FEE_PAY_PREPAID,
            }
            if delivery.free_condition_amount:
                fee["freeConditionalAmount"] = delivery.free_condition_amount
        else:
            fee = {
                "deliveryFeeType": constants.FEE_TYPE_PAID,
                "baseFee": self.settings.delivery_default_fee,
                "deliveryFeePayType": constants.FEE_PAY_PREPAID,
            }
        info["deliveryFee"] = fee

        info["claimDeliveryInfo"] = {
            "deliveryType": delivery_type,
            "deliveryAttributeType": constants.DELIVERY_ATTRIBUTE_NORMAL,
            "deliveryFee": {"deliveryFeeType": constants.FEE_TYPE_FREE},
            "returnDeliveryFee": delivery.return_fee if delivery.return_fee is not None else self.settings.delivery_return_fee,
            "exchangeDeliveryFee": (
                delivery.exchange_fee if delivery.exchange_fee is not None else self.settings.delivery_exchange_fee
            ),
        }
        return info

    def _build_after_service(self, phone: Optional[str], guide: Optional[str]) -> Dict[str, Any]:
        return {
            "afterServiceTelephoneNumber": (phone or "").strip() or self.settings.listing_after_service_phone,
            "afterServiceGuideContent": (guide or "").strip() or self.settings.listing_after_service_guide,
        }

    def _build_notice(
        self, name: str, model_name: Optional[str], manufacturer: Optional[str], after_service_phone: str
    ) -> Dict[str, Any]:
        return {
            "productInfoProvidedNoticeType": constants.PRODUCT_INFO_NOTICE_ETC,
            "etc": {
                "content": self.settings.listing_notice_content,
                "itemName": name,
                "modelName": (model_name or "").strip() or name,
                "manufacturer": (manufacturer or "").strip() or self.settings.listing_default_manufacturer,
                "afterServiceDirector": after_service_phone,
            },
        }

    def _build_detail_attribute(
        self,
        *,
        name: str,
        model_name: Optional[str],
        brand_name: Optional[str],
        manufacturer: Optional[str],
        tax_type: str,
        after_service_phone: Optional[str],
        after_service_guide: Optional[str],
        origin: OriginInfo,
        flags: ComplianceFlags,
    ) -> Dict[str, Any]:
        after_service = self._build_after_service(after_service_phone, after_service_guide)
        detail: Dict[str, Any] = {
            "minorPurchasable": False,
            "taxType": tax_type,
            "afterServiceInfo": after_service,
            "productInfoProvidedNotice": self._build_notice(
                name, model_name, manufacturer, after_service["afterServiceTelephoneNumber"]
            ),
            "originAreaInfo": origin.to_payload(),
        }
        detail.update(self.compliance.build_certification_block(flags))

        search_info = {}
        if brand_name:
            search_info["brandName"] = brand_name
        if model_name:
            search_info["modelName"] = model_name
        if manufacturer:
            search_info["manufacturerName"] = manufacturer
        if search_info:
            detail["naverShoppingSearchInfo"] = search_info
        return detail
