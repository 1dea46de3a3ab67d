from typing import Dict, Optional

from flask import current_app, has_request_context, request, session

DEFAULT_LOCALE = 'en'

# Unknown keys fall back to English, then to the key itself.
TEXTS_EN: Dict[str, str] = {
    'nav.home': 'Home',
    'nav.programs': 'Programs',
    'nav.news': 'News',
    'nav.gallery': 'Gallery',
    'nav.events': 'Events',
    'nav.contact': 'Contact',
    'nav.about': 'About',
    'nav.dashboard': 'Dashboard',
    'nav.admin': 'Admin',
    'nav.login': 'Sign in',
    'nav.logout': 'Sign out',
    'nav.register': 'Register',
    'home.title': 'Quranic Complex',
    'home.subtitle': 'Learning, reciting and living the Quran together.',
    'home.latest_news': 'Latest news',
    'home.upcoming_events': 'Upcoming events',
    'programs.age_group': 'Age group',
    'programs.schedule': 'Schedule',
    'events.empty': 'No upcoming events.',
    'news.empty': 'No news yet.',
    'contact.sent': 'Message sent successfully',
    'about.body': 'The Quranic Complex offers recitation, memorization and study programs for all ages.',
    'nav.donate': 'Donate',
    'nav.tts': 'Listen',
    'donation.title': 'Support the Quranic Complex',
    'donation.intro': 'Your donation funds classes, teachers and the upkeep of the center.',
    'donation.payment_title': 'Complete your donation',
    'donation.payment_intro': 'Please transfer the donation amount to the account below and upload a receipt of your payment.',
    'donation.card': 'Card number',
    'donation.thanks': 'Receipt uploaded. Thank you for your donation, a confirmation email has been sent.',
    'charity.title': 'Charity donation',
    'charity.intro': 'Transfer your donation to the account below and submit a picture of the payment.',
    'charity.submitted': 'Your payment has been submitted.',
    'charity.history': 'Your payments',
    'tts.title': 'Text to speech',

    'auth.register.success': 'Registration successful! Please check your email to verify your account.',
    'auth.login_code.sent': 'If your email is registered, you will receive a login code shortly.',
    'auth.login_code.link': 'Sign in with an emailed code',
    'auth.login_code.enter': 'Enter your login code',
    'auth.login_code.resend': 'Send a new code',
    'auth.verified': 'Your email has been verified. You can sign in now.',
    'auth.logged_out': 'You have been signed out.',
    'auth.login_required': 'Please sign in to continue.',
    'auth.access_denied': 'You do not have access to this page.',

    'auth.error.defaultTitle': 'Authentication error',
    'auth.error.defaultMessage': 'An unexpected error occurred. Please try again.',
    'auth.error.configErrorTitle': 'Server configuration error',
    'auth.error.configErrorMessage': 'There is a problem with the server configuration. Contact support.',
    'auth.error.accessDeniedTitle': 'Access denied',
    'auth.error.accessDeniedMessage': 'You do not have permission to sign in.',
    'auth.error.verificationErrorTitle': 'Verification failed',
    'auth.error.verificationGenericMessage': 'The sign in link is no longer valid. It may have been used already or it may have expired.',
    'auth.error.signInErrorTitle': 'Sign in failed',
    'auth.error.credentialsSignInMessage': 'The email or password you entered is incorrect.',
    'auth.error.emailNotVerifiedTitle': 'Email not verified',
    'auth.error.emailNotVerifiedMessage': 'Please verify your email address before signing in. Check your inbox for the verification link.',
    'auth.error.invalidOrExpiredCodeMessage': 'The login code is invalid or has expired. Please request a new one.',
    'auth.error.verificationError_VerificationMissingToken': 'The verification link is missing its token.',
    'auth.error.verificationError_VerificationInvalidToken': 'The verification link is invalid.',
    'auth.error.verificationError_VerificationExpiredToken': 'The verification link has expired. Please register again or contact support.',
    'auth.error.verificationError_VerificationUserNotFound': 'No account matches this verification link.',
    'auth.error.verificationError_VerificationFailed': 'Email verification failed. Please try again later.',
}

TEXTS_FA: Dict[str, str] = {
    'nav.home': 'خانه',
    'nav.programs': 'برنامه‌ها',
    'nav.news': 'اخبار',
    'nav.gallery': 'گالری',
    'nav.events': 'رویدادها',
    'nav.contact': 'تماس',
    'nav.about': 'درباره ما',
    'nav.dashboard': 'داشبورد',
    'nav.admin': 'مدیریت',
    'nav.login': 'ورود',
    'nav.logout': 'خروج',
    'nav.register': 'ثبت نام',
    'home.title': 'مجتمع قرآنی',
    'home.latest_news': 'آخرین اخبار',
    'home.upcoming_events': 'رویدادهای پیش رو',
    'nav.donate': 'حمایت مالی',
    'donation.title': 'حمایت از مجتمع قرآنی',
    'donation.payment_title': 'تکمیل کمک مالی',
    'donation.card': 'شماره کارت',
    'donation.thanks': 'رسید بارگذاری شد. از کمک شما سپاسگزاریم.',
    'charity.title': 'کمک خیریه',
    'charity.submitted': 'پرداخت شما ثبت شد.',
    'tts.title': 'تبدیل متن به گفتار',
    'auth.register.success': 'ثبت نام با موفقیت انجام شد. لطفا ایمیل خود را برای تایید حساب بررسی کنید.',
    'auth.login_code.sent': 'اگر ایمیل شما ثبت شده باشد، کد ورود به زودی ارسال می‌شود.',
    'auth.error.defaultTitle': 'خطای احراز هویت',
    'auth.error.defaultMessage': 'خطای غیرمنتظره‌ای رخ داد. دوباره تلاش کنید.',
    'auth.error.signInErrorTitle': 'ورود ناموفق',
    'auth.error.credentialsSignInMessage': 'ایمیل یا رمز عبور نادرست است.',
    'auth.error.emailNotVerifiedTitle': 'ایمیل تایید نشده',
    'auth.error.emailNotVerifiedMessage': 'لطفا پیش از ورود، ایمیل خود را تایید کنید.',
    'auth.error.invalidOrExpiredCodeMessage': 'کد ورود نامعتبر یا منقضی شده است.',
    'auth.error.verificationErrorTitle': 'تایید ناموفق',
}

TEXTS_AR: Dict[str, str] = {
    'nav.home': 'الرئيسية',
    'nav.programs': 'البرامج',
    'nav.news': 'الأخبار',
    'nav.gallery': 'المعرض',
    'nav.events': 'الفعاليات',
    'nav.contact': 'اتصل بنا',
    'nav.about': 'من نحن',
    'nav.dashboard': 'لوحة التحكم',
    'nav.admin': 'الإدارة',
    'nav.login': 'تسجيل الدخول',
    'nav.logout': 'تسجيل الخروج',
    'nav.register': 'التسجيل',
    'home.title': 'المجمع القرآني',
    'home.latest_news': 'آخر الأخبار',
    'home.upcoming_events': 'الفعاليات القادمة',
    'nav.donate': 'تبرع',
    'donation.title': 'ادعم المجمع القرآني',
    'donation.payment_title': 'إكمال التبرع',
    'donation.card': 'رقم البطاقة',
    'donation.thanks': 'تم رفع الإيصال. شكرا لتبرعك.',
    'charity.title': 'تبرع خيري',
    'charity.submitted': 'تم تسجيل دفعتك.',
    'tts.title': 'تحويل النص إلى كلام',
    'auth.register.success': 'تم التسجيل بنجاح. يرجى التحقق من بريدك الإلكتروني لتأكيد حسابك.',
    'auth.login_code.sent': 'إذا كان بريدك الإلكتروني مسجلا، فستتلقى رمز الدخول قريبا.',
    'auth.error.defaultTitle': 'خطأ في المصادقة',
    'auth.error.defaultMessage': 'حدث خطأ غير متوقع. حاول مرة أخرى.',
    'auth.error.signInErrorTitle': 'فشل تسجيل الدخول',
    'auth.error.credentialsSignInMessage': 'البريد الإلكتروني أو كلمة المرور غير صحيحة.',
    'auth.error.emailNotVerifiedTitle': 'البريد الإلكتروني غير مؤكد',
    'auth.error.emailNotVerifiedMessage': 'يرجى تأكيد بريدك الإلكتروني قبل تسجيل الدخول.',
    'auth.error.invalidOrExpiredCodeMessage': 'رمز الدخول غير صالح أو منتهي الصلاحية.',
    'auth.error.verificationErrorTitle': 'فشل التحقق',
}

TEXTS: Dict[str, Dict[str, str]] = {
    'en': TEXTS_EN,
    'fa': TEXTS_FA,
    'ar': TEXTS_AR,
}

VERIFICATION_ERRORS = (
    'VerificationMissingToken',
    'VerificationInvalidToken',
    'VerificationExpiredToken',
    'VerificationUserNotFound',
    'VerificationFailed',
)


def supported_locales():
    return tuple(current_app.config.get('LOCALES', TEXTS.keys()))


def is_supported(locale: Optional[str]) -> bool:
    return bool(locale) and locale in supported_locales()


def is_rtl(locale: Optional[str]) -> bool:
    return locale in current_app.config.get('RTL_LOCALES', ('fa', 'ar'))


def resolve_locale(*codes: Optional[str]) -> str:
    for code in codes:
        if not code:
            continue
        normalized = code.lower()
        if is_supported(normalized):
            return normalized
    return current_app.config.get('DEFAULT_LOCALE', DEFAULT_LOCALE)


def get_locale() -> str:
    """Locale of the current request: URL segment, ?lang=, session, then default."""
    if not has_request_context():
        return current_app.config.get('DEFAULT_LOCALE', DEFAULT_LOCALE)
    view_args = request.view_args or {}
    return resolve_locale(view_args.get('locale'), request.args.get('lang'), session.get('locale'))


def translate(key: str, locale: Optional[str] = None, **kwargs) -> str:
    language = (locale or get_locale()).lower()
    text = TEXTS.get(language, {}).get(key)
    if text is None:
        text = TEXTS_EN.get(key, key)
    return text.format(**kwargs) if kwargs else text


def auth_error_message(code: Optional[str], locale: Optional[str] = None):
    """Map an auth error code to a localized (title, message) pair."""
    if code == 'Configuration':
        keys = ('configErrorTitle', 'configErrorMessage')
    elif code == 'AccessDenied':
        keys = ('accessDeniedTitle', 'accessDeniedMessage')
    elif code == 'Verification':
        keys = ('verificationErrorTitle', 'verificationGenericMessage')
    elif code == 'CredentialsSignin':
        keys = ('signInErrorTitle', 'credentialsSignInMessage')
    elif code in VERIFICATION_ERRORS:
        keys = ('verificationErrorTitle', f'verificationError_{code}')
    elif code == 'EmailNotVerified':
        keys = ('emailNotVerifiedTitle', 'emailNotVerifiedMessage')
    elif code in ('Invalid login code', 'Login code expired'):
        keys = ('signInErrorTitle', 'invalidOrExpiredCodeMessage')
    else:
        keys = ('defaultTitle', 'defaultMessage')
    title, message = keys
    return translate(f'auth.error.{title}', locale), translate(f'auth.error.{message}', locale)
