"""
User-facing (Arabic) messages keyed by error code or notification kind.

A message may hold {named} placeholders, filled from the notification context.
"""

MESSAGES: dict[str, str] = {
    # Validation
    "INVALID_AMOUNT": "يرجى إدخال مبلغ صحيح.",
    "INVALID_METHOD": "طريقة الدفع غير معروفة.",
    "INVALID_TIME_RANGE": "وقت البداية يجب أن يكون قبل وقت النهاية.",
    "INVALID_DATE_RANGE": "تاريخ المغادرة يجب أن يكون بعد تاريخ الوصول.",
    "INVALID_TARGET": "يجب اختيار قاعة أو شاليه أو خدمة واحدة فقط.",
    "PAST_DATE": "لا يمكن الحجز في تاريخ سابق.",
    "OVERLAP": "يوجد حجز مؤكد مسبقاً في هذا التاريخ.",
    "COUPON_REJECTED": "كود الخصم غير صالح.",
    "UNKNOWN_ADDON": "إضافة غير متوفرة لهذا العنصر.",
    "MISSING_FIELD": "نقص في البيانات، يرجى إكمال الحقول المطلوبة.",
    "DUPLICATE_REFERENCE": "هذه الدفعة مسجلة لحجز آخر.",
    # Not found
    "BOOKING_NOT_FOUND": "الحجز غير موجود.",
    "PAYMENT_NOT_FOUND": "الدفعة غير موجودة.",
    "COUPON_NOT_FOUND": "الكوبون غير موجود.",
    "ASSET_NOT_FOUND": "العنصر المطلوب غير موجود.",
    # State / permissions / consistency
    "INVALID_STATE": "المبلغ المدفوع يتجاوز إجمالي الحجز.",
    "INVALID_TRANSITION": "لا يمكن تغيير حالة الحجز بهذا الشكل.",
    "READ_ONLY": "لا تملك صلاحية تسجيل الدفعات.",
    "FORBIDDEN": "لا تملك صلاحية تنفيذ هذا الإجراء.",
    "CONFIRMATION_REQUIRED": "يرجى تأكيد حذف الدفعة.",
    "LEDGER_CONFLICT": "تعذر تحديث سجل الدفعات، يرجى المحاولة مرة أخرى.",
    "GATEWAY_ERROR": "تعذر الاتصال ببوابة الدفع.",
    "GATEWAY_DISABLED": "بوابة الدفع غير مفعلة.",
    # Notifications
    "payment_added": "تم تسجيل الدفعة",
    "payment_removed": "تم حذف الدفعة",
    "booking_created": "تم الطلب بنجاح",
    "booking_on_hold": "تم حجز الموعد لمدة {hold_hours} ساعة. يرجى الدفع للتأكيد.",
    "booking_manual_created": "تم إنشاء الحجز وتحديث سجل العملاء.",
    "booking_updated": "تم حفظ تفاصيل الحجز بنجاح.",
    "booking_status_changed": "تم تحديث حالة الحجز.",
    "booking_deleted": "تم حذف الحجز.",
    "coupon_applied": "تم تطبيق الخصم",
    "coupon_saved": "تم حفظ الكوبون",
}

GENERIC_ERROR = "حدث خطأ غير متوقع، يرجى المحاولة لاحقاً."


def message_for(key: str, **params: object) -> str:
    template = MESSAGES.get(key, GENERIC_ERROR)
    return template.format(**params) if params else template
