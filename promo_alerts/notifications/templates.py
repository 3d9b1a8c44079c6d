"""Email rendering for promo code alerts.

Rendering is pure: the same alert type, code, details and timestamp always
produce the same subject and body. Unknown alert types fall back to a
neutral template instead of failing.
"""
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape

from config import settings


@dataclass(frozen=True)
class AlertTemplate:
    color: str
    icon: str
    title: str
    subject: str
    message: str


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str


def _templates(promo_code: str, details: dict) -> dict[str, AlertTemplate]:
    code = f"<strong>{escape(promo_code)}</strong>"

    def get(key: str, default) -> str:
        value = details.get(key)
        return escape(str(default if value is None else value))

    return {
        "redemption_cap": AlertTemplate(
            color="#f59e0b",
            icon="⚠️",
            title="Redemption Cap Alert",
            subject=f"⚠️ Promo Code Alert: {promo_code} nearing redemption cap",
            message=(
                f"Promo code {code} has reached {get('currentPct', 80)}% of its "
                f"redemption cap ({get('usedCount', 0)}/{get('usageLimit', 0)} uses)."
            ),
        ),
        "expired": AlertTemplate(
            color="#ef4444",
            icon="🔴",
            title="Promo Code Expired",
            subject=f"🔴 Promo Code Alert: {promo_code} has expired",
            message=f"Promo code {code} has expired as of {get('expiredAt', 'now')}.",
        ),
        "expiring_soon": AlertTemplate(
            color="#f97316",
            icon="⏰",
            title="Expiring Soon",
            subject=f"⏰ Promo Code Alert: {promo_code} expiring soon",
            message=(
                f"Promo code {code} will expire in {get('daysLeft', 0)} day(s) "
                f"on {get('expiresAt', '')}."
            ),
        ),
        "roi_target": AlertTemplate(
            color="#10b981",
            icon="🎯",
            title="ROI Target Reached",
            subject=f"🎯 Promo Code Alert: {promo_code} hit ROI target",
            message=(
                f"Promo code {code} has hit the ROI target of "
                f"{get('roiTarget', 200)}%. Current ROI: "
                f"<strong>{get('currentRoi', 0)}%</strong>."
            ),
        ),
    }


def _fallback(promo_code: str) -> AlertTemplate:
    return AlertTemplate(
        color="#6366f1",
        icon="📢",
        title="Promo Code Alert",
        subject=f"Promo Code Alert: {promo_code}",
        message=f"Alert for promo code <strong>{escape(promo_code)}</strong>.",
    )


def humanize_alert_type(alert_type: str) -> str:
    return " ".join(word.capitalize() for word in alert_type.split("_") if word)


def humanize_detail_key(key: str) -> str:
    # currentPct -> Current Pct
    spaced = re.sub(r"([A-Z])", r" \1", key)
    return spaced[:1].upper() + spaced[1:]


def _row(label: str, value: str, monospace: bool = False) -> str:
    font = "font-family:monospace;" if monospace else ""
    return (
        '<tr><td style="padding:4px 0;">'
        f'<span style="color:#6b7280;font-size:13px;">{escape(label)}:</span> '
        f'<strong style="color:#111827;font-size:13px;{font}">{escape(value)}</strong>'
        "</td></tr>"
    )


def render_alert_email(
    alert_type: str,
    promo_code: str,
    details: dict,
    now: datetime | None = None,
    dashboard_url: str | None = None,
) -> RenderedEmail:
    now = now or datetime.now(timezone.utc)
    dashboard_url = dashboard_url or settings.admin_dashboard_url
    details = details or {}
    cfg = _templates(promo_code, details).get(alert_type) or _fallback(promo_code)

    rows = [
        _row("Promo Code", promo_code, monospace=True),
        _row("Alert Type", humanize_alert_type(alert_type)),
        _row("Triggered At", now.strftime("%Y-%m-%d %H:%M:%S %Z").strip()),
    ]
    rows.extend(
        _row(humanize_detail_key(key), str(value)) for key, value in details.items()
    )

    rows_html = "".join(rows)
    html = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><meta name="viewport" content="width=device-width, initial-scale=1"></head>
<body style="margin:0;padding:0;background:#f9fafb;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',sans-serif;">
  <table width="100%" cellpadding="0" cellspacing="0" style="background:#f9fafb;padding:32px 0;">
    <tr><td align="center">
      <table width="560" cellpadding="0" cellspacing="0" style="background:#ffffff;border-radius:12px;overflow:hidden;">
        <tr><td style="background:{cfg.color};padding:24px 32px;">
          <h1 style="margin:0;color:#ffffff;font-size:20px;font-weight:700;">{cfg.icon} {cfg.title}</h1>
          <p style="margin:4px 0 0;color:rgba(255,255,255,0.85);font-size:13px;">EdStop Admin Notification</p>
        </td></tr>
        <tr><td style="padding:32px;">
          <p style="margin:0 0 16px;color:#374151;font-size:15px;line-height:1.6;">{cfg.message}</p>
          <table width="100%" cellpadding="0" cellspacing="0" style="background:#f3f4f6;border-radius:8px;padding:16px;margin:16px 0;">
            {rows_html}
          </table>
          <a href="{escape(dashboard_url)}" style="display:inline-block;background:{cfg.color};color:#ffffff;text-decoration:none;padding:12px 24px;border-radius:8px;font-size:14px;font-weight:600;margin-top:8px;">View Promo Codes →</a>
        </td></tr>
        <tr><td style="background:#f9fafb;padding:16px 32px;border-top:1px solid #e5e7eb;">
          <p style="margin:0;color:#9ca3af;font-size:12px;">This is an automated alert from EdStop Admin. Manage alert settings in the Admin Promo Code Management panel.</p>
        </td></tr>
      </table>
    </td></tr>
  </table>
</body>
</html>"""
    return RenderedEmail(subject=cfg.subject, html=html)
