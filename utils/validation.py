# utils/validation.py
import re
from typing import Any, Dict, Optional
from utils.logging_setup import setup_logging

logger = setup_logging()

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

TABLE_SCHEMAS = {
    "leads": {
        "id", "nome", "email", "telefone", "mensagem", "status", "prioridade",
        "created_at", "updated_at"
    },
    "depoimentos": {
        "id", "token", "nome", "depoimento", "avaliacao", "aprovado", "created_at"
    },
    "site_config": {
        "id", "titulo", "logo_url", "consulta_imagem_url", "nutricionista_imagem_url", "updated_at"
    },
}

class PayloadValidationError(ValueError):
    """Entrada inválida vinda do cliente; a mensagem vai direto na resposta 400."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

def filter_row(table: str, data: Dict) -> Dict:
    """
    Keep only the columns that exist in the given Supabase table.

    Args:
        table (str): Table name (leads, depoimentos, site_config).
        data (Dict): Row candidate.

    Returns:
        Dict: Filtered dictionary containing only valid columns.
    """
    schema = TABLE_SCHEMAS.get(table)
    if schema is None:
        raise ValueError(f"Tabela desconhecida: {table}")
    valid_data = {k: v for k, v in data.items() if k in schema}
    if len(valid_data) < len(data):
        logger.warning(f"Filtered out invalid {table} columns: {set(data.keys()) - set(valid_data.keys())}")
    return valid_data

def is_valid_email(email: Any) -> bool:
    return isinstance(email, str) and bool(EMAIL_REGEX.match(email.strip()))

def _text(body: Dict, field: str) -> str:
    value = body.get(field)
    if value is None:
        return ""
    return str(value).strip()

def require_fields(body: Dict, *fields: str) -> None:
    for field in fields:
        if not _text(body, field):
            raise PayloadValidationError(f"Campo obrigatório não preenchido: {field}", field=field)

def require_id(body: Dict):
    record_id = body.get("id")
    if isinstance(record_id, str):
        record_id = record_id.strip()
    if not record_id or isinstance(record_id, bool):
        raise PayloadValidationError("ID é obrigatório", field="id")
    return record_id

def validate_lead_payload(body: Dict) -> Dict:
    """Validate a lead submission and return the trimmed fields."""
    require_fields(body, "nome", "email", "telefone", "objetivo")
    if not is_valid_email(body["email"]):
        raise PayloadValidationError("Email inválido", field="email")
    detalhes = _text(body, "detalhes")
    return {
        "nome": _text(body, "nome"),
        "email": _text(body, "email").lower(),
        "telefone": _text(body, "telefone"),
        "objetivo": _text(body, "objetivo"),
        "detalhes": detalhes or None,
    }

def parse_estrelas(value: Any) -> int:
    try:
        estrelas = int(value)
    except (TypeError, ValueError):
        raise PayloadValidationError("Avaliação deve ser um número de 1 a 5", field="estrelas")
    if estrelas < 1 or estrelas > 5:
        raise PayloadValidationError("Avaliação deve ser um número de 1 a 5", field="estrelas")
    return estrelas

def validate_depoimento_payload(body: Dict) -> Dict:
    """
    Validate a testimonial submission.

    Accepts the panel field names (texto, estrelas) and the row names
    (depoimento, avaliacao) used by the public form.
    """
    normalized = dict(body)
    if not _text(normalized, "texto") and _text(normalized, "depoimento"):
        normalized["texto"] = normalized["depoimento"]
    if normalized.get("estrelas") in (None, "") and normalized.get("avaliacao") not in (None, ""):
        normalized["estrelas"] = normalized["avaliacao"]
    require_fields(normalized, "nome", "texto", "estrelas")
    return {
        "nome": _text(normalized, "nome"),
        "texto": _text(normalized, "texto"),
        "estrelas": parse_estrelas(normalized["estrelas"]),
        "resultado": _text(normalized, "resultado") or None,
        "token": _text(normalized, "token") or None,
    }

def formatar_nome(nome: str) -> str:
    # Primeira letra de cada palavra em maiúscula
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), nome.lower())

def formatar_telefone(telefone: str) -> str:
    numeros = re.sub(r"\D", "", telefone)
    if len(numeros) == 11:
        return f"({numeros[:2]}) {numeros[2:7]}-{numeros[7:]}"
    if len(numeros) == 10:
        return f"({numeros[:2]}) {numeros[2:6]}-{numeros[6:]}"
    return telefone
