from .models import FlowerStylingResult, SharePayload, SubscriptionPlan, SubscriptionWeek

APP_NAME = "PetalPath"
DEFAULT_SHARE_URL = "https://petalpath.app"


def _payload(title: str, text: str, url: str) -> SharePayload:
    url = url if url and url.startswith("http") else DEFAULT_SHARE_URL
    return SharePayload(
        title=title,
        text=text,
        copy_text=f"{title}\n\n{text}\n\nShared via {APP_NAME}: {url}",
    )


def styling_share(result: FlowerStylingResult, url: str = DEFAULT_SHARE_URL) -> SharePayload:
    text = f"Check out these floral styling tips for {result.name}!"
    if result.meaning:
        text += f" Meaning: {result.meaning}."
    if result.color_palette:
        text += f" Suggested palette: {', '.join(result.color_palette)}."
    return _payload(f"{APP_NAME}: Styling guide for {result.name}", text, url)


def plan_share(plan: SubscriptionPlan, url: str = DEFAULT_SHARE_URL) -> SharePayload:
    flowers = ", ".join(week.main_flower for week in plan.weeks)
    return _payload(f"{APP_NAME}: {plan.title}", f"{plan.description} Featuring {flowers}.", url)


def week_share(week: SubscriptionWeek, url: str = DEFAULT_SHARE_URL) -> SharePayload:
    return _payload(
        f"{APP_NAME}: Week {week.week} Design",
        f"Check out this {week.main_flower} arrangement for my floral plan! Theme: {week.theme}",
        url,
    )
