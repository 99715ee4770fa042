import logging
import secrets

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update, WebAppInfo
from telegram.ext import ContextTypes

from app.config import OWNER_ID, WEB_APP_URL
from app.database import async_session_maker
from app.models.schemas import AiParsedResult
from app.services.currency import MepRateService, ars_to_usd
from app.services.ledger import LedgerService
from app.services.parser import AiUnavailableError, process_financial_input

logger = logging.getLogger(__name__)

# Parsed results awaiting Save/Cancel, by token; the token travels in the button data
PENDING_KEY = "pending_ai_results"

TYPE_LABELS = {
    "expense": "Gasto",
    "income": "Ingreso",
    "investment": "Inversión",
    "saving": "Ahorro",
}


def _is_owner(update: Update) -> bool:
    return not OWNER_ID or str(update.effective_user.id) == str(OWNER_ID)


def format_result(result: AiParsedResult, rate) -> str:
    lines = [
        f"{TYPE_LABELS.get(result.type, result.type)}: {result.concept or '-'}",
        f"Monto: ${result.amount_ars:,.2f} ARS (~${ars_to_usd(result.amount_ars, rate)} USD)",
    ]
    if result.type == "expense" and result.category:
        lines.append(f"Categoría: {result.category}")
    if result.type == "investment":
        lines.append(f"Activo: {result.asset_name or '-'} ({result.investment_type or 'traditional'})")
    if result.tags:
        lines.append("Tags: " + ", ".join(result.tags))
    return "\n".join(lines)


def confirm_keyboard(token: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("Guardar", callback_data=f"ai:save:{token}"),
                InlineKeyboardButton("Cancelar", callback_data=f"ai:cancel:{token}"),
            ]
        ]
    )


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    user_name = update.effective_user.first_name
    welcome_text = (
        f"¡Hola, {user_name}! 💸\nBienvenido a Finanzas AI.\n"
        "Mandame un texto o un audio con un gasto, ingreso, inversión o ahorro."
    )

    keyboard = [[InlineKeyboardButton("✨ Abrir Finanzas", web_app=WebAppInfo(url=WEB_APP_URL))]] if WEB_APP_URL else []
    await update.message.reply_text(welcome_text, reply_markup=InlineKeyboardMarkup(keyboard) if keyboard else None)


async def _parse_and_ask(update: Update, context: ContextTypes.DEFAULT_TYPE, **payload):
    rate = MepRateService().get_rate()
    try:
        result = await process_financial_input(current_mep=rate, **payload)
    except AiUnavailableError:
        await update.message.reply_text("El asistente de IA no está configurado.")
        return

    if result is None or result.type == "unknown":
        await update.message.reply_text("No pude entender el movimiento, ¿podés repetirlo?")
        return

    token = secrets.token_hex(4)
    context.user_data.setdefault(PENDING_KEY, {})[token] = result.model_dump()
    await update.message.reply_text(format_result(result, rate), reply_markup=confirm_keyboard(token))


async def handle_text(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not _is_owner(update):
        return
    await _parse_and_ask(update, context, text=update.message.text)


async def handle_voice(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if not _is_owner(update):
        return
    voice = update.message.voice or update.message.audio
    tg_file = await voice.get_file()
    audio = await tg_file.download_as_bytearray()
    await _parse_and_ask(update, context, audio=bytes(audio), mime_type=voice.mime_type or "audio/ogg")


async def handle_confirmation(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    await query.answer()

    _, action, token = (query.data.split(":", 2) + ["", ""])[:3]
    pending = context.user_data.get(PENDING_KEY, {}).pop(token, None)
    if action != "save" or not pending:
        await query.edit_message_text("Cancelado.")
        return

    result = AiParsedResult.model_validate(pending)
    async with async_session_maker() as session:
        await LedgerService(session, str(update.effective_user.id)).confirm_ai_result(result)

    logger.info(f"Stored {result.type} from chat for user {update.effective_user.id}")
    await query.edit_message_text(f"✅ Guardado\n{format_result(result, MepRateService().get_rate())}")
