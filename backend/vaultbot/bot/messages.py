"""User-facing texts and formatting for the bot."""

from datetime import date
from typing import Optional

from ..db.models import SecretSummary
from ..vault.expiry import Urgency, classify_days, days_until

HELP_TEXT = """🔐 密码管理机器人

📝 保存账号：直接发送名称开始引导
例如：gpt team车位号

📄 保存长文本（SSH密钥等）：
  #存 名称 [@到期日期]
  内容...

📅 设置到期：#到期 ID 2025-12-31（取消：#到期 ID 无）

🔍 查询：直接输入关键词

📋 命令：
  /list - 所有条目
  /expiring - 即将到期
  /cancel - 取消当前操作
  /help - 帮助

🔒 AES-GCM 加密存储
⏰ 到期自动提醒"""

UNAUTHORIZED = "⛔ 无权限"
CANCELLED = "✅ 已取消"
NOT_FOUND = "❌ 不存在"
UNKNOWN_COMMAND = "❓ 未知命令，发送 /help 查看用法"
DECRYPT_FAILED = "❌ 读取失败：数据无法解密"
STORE_FAILED = "⚠️ 操作失败，请稍后重试"

SAVE_FORMAT = "❓ 格式：#存 名称\\n内容"
SAVE_EMPTY = "❓ 名称和内容都不能为空"
EXPIRY_SET_FORMAT = "❓ 格式：#到期 ID 2025-12-31"
BAD_DATE = "❓ 日期格式不对"
BAD_DATE_REPROMPT = "❓ 日期格式不对，请用 2025-12-31 或 12-31 格式："
EXPIRY_CLEARED = "✅ 已取消到期日期"

ASK_SITE = "🌐 请输入网站："
ASK_ACCOUNT = "👤 请输入账号："
ASK_PASSWORD = "🔑 请输入密码："
ASK_EXPIRY = "📅 需要设置到期提醒吗？"
ASK_CUSTOM_EXPIRY = "📅 请输入到期日期（如 2025-12-31 或 12-31）："
ASK_EXTRA = "📝 需要添加备注吗？"

LIST_EMPTY = "📭 还没有保存任何信息"
LIST_HEADER = "📋 点击查看："
DELETE_MODE_EMPTY = "📭 没有记录"
DELETE_MODE_HEADER = "🗑️ 点击删除："
EXPIRING_EMPTY = "✅ 30天内没有到期"
EXPIRING_HEADER = "⏰ 即将到期："

# Window used by /expiring
EXPIRING_WINDOW_DAYS = 30


def start_intake(name: str) -> str:
    return f"📝 保存「{name}」\n\n{ASK_SITE}"


def expiry_line(expires_at: date) -> str:
    return f"📅 到期：{expires_at.isoformat()}"


def ask_extra(expires_at: Optional[date]) -> str:
    if expires_at:
        return f"{expiry_line(expires_at)}\n\n{ASK_EXTRA}"
    return ASK_EXTRA


def saved_raw(name: str, expires_at: Optional[date]) -> str:
    msg = f"✅ 已保存「{name}」"
    if expires_at:
        msg += f"\n{expiry_line(expires_at)}"
    return msg


def saved_structured(
    name: str,
    site: str,
    account: str,
    extra: Optional[str],
    expires_at: Optional[date],
) -> str:
    msg = f"✅ 保存成功！\n\n🏷️ {name}\n🌐 {site}\n👤 {account}\n🔑 ******"
    if extra:
        msg += f"\n📝 {extra}"
    if expires_at:
        msg += f"\n{expiry_line(expires_at)}"
    return msg


def expiry_set(expires_at: date) -> str:
    return f"✅ 到期：{expires_at.isoformat()}"


def search_results(count: int) -> str:
    return f"🔍 找到 {count} 条："


def deleted(name: str) -> str:
    return f"🗑️ 已删除「{name}」"


def confirm_delete(name: str) -> str:
    return f"⚠️ 确定删除「{name}」吗？此操作不可恢复。"


def set_expiry_help(record_id: int) -> str:
    return f"📅 回复设置到期：\n#到期 {record_id} 2025-12-31\n\n取消到期：\n#到期 {record_id} 无"


def expiry_info(expires_at: Optional[date], today: Optional[date] = None) -> str:
    """Annotation appended to a detail view."""
    if not expires_at:
        return ""
    days = days_until(expires_at, today)
    urgency = classify_days(days)
    if urgency is Urgency.EXPIRED:
        return f"\n{urgency.marker} 已过期 {-days} 天"
    if urgency is Urgency.TODAY:
        return f"\n{urgency.marker} 今天到期！"
    if urgency is Urgency.FAR:
        return f"\n{expiry_line(expires_at)}"
    return f"\n{urgency.marker} {days} 天后到期"


def raw_detail(name: str, body: str) -> str:
    return f"🔐 {name}\n\n{body}"


def structured_detail(name: str, site: str, account: str, password: str, extra: Optional[str]) -> str:
    msg = f"🔐 {name}\n🌐 {site}\n👤 {account}\n🔑 {password}"
    if extra:
        msg += f"\n📝 {extra}"
    return msg


def list_label(summary: SecretSummary, today: Optional[date] = None) -> str:
    """Button label for /list: flags overdue and due-this-week records."""
    label = summary.label
    if summary.expires_at:
        days = days_until(summary.expires_at, today)
        if days <= 0:
            label = f"⚠️ {label}"
        elif days <= 7:
            label = f"🔴 {label}"
    return label


def expiring_label(summary: SecretSummary, today: Optional[date] = None) -> str:
    """Button label for /expiring: tier marker plus day count."""
    days = days_until(summary.expires_at, today)
    marker = "⚠️" if days <= 0 else classify_days(days).marker
    return f"{marker} {summary.name} ({days}天)"
