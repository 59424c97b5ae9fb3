# tools/field_mapper.py
"""
Conversões entre o formato público (site/painel) e as linhas do Supabase.

Leads não têm coluna para `objetivo`: ele é gravado dentro de `mensagem` e
recuperado por palavra-chave na leitura. A recuperação é aproximada; qualquer
mensagem sem "emagrecimento" nem "massa" vira `reeducacao`.
"""
import random
import time
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Type, TypeVar
from pydantic import BaseModel, ValidationError
from models.lead_data import Lead, LeadRow, LEAD_STATUS
from models.depoimento import Depoimento, DepoimentoRow, RESULTADO_PADRAO
from models.site_config import ConfigSite, SiteConfigRow
from utils.logging_setup import setup_logging

logger = setup_logging()

DETALHES_PADRAO = "Não informado"
MENSAGEM_PREFIXO = "Objetivo: "

RowModel = TypeVar("RowModel", bound=BaseModel)

def agora_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

def gerar_token(prefix: str = "token") -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{random.random()}"

def parse_rows(model: Type[RowModel], rows: Iterable[Dict]) -> List[RowModel]:
    """Validate raw rows, dropping the ones that don't fit the table shape."""
    parsed = []
    for row in rows or []:
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(f"Ignorando linha inválida para {model.__name__}: {row!r} ({e.error_count()} erros)")
    return parsed

# Leads

def encode_mensagem(objetivo: str, detalhes: Optional[str] = None) -> str:
    return f"{MENSAGEM_PREFIXO}{objetivo}. Detalhes: {detalhes or DETALHES_PADRAO}"

def decode_objetivo(mensagem: Optional[str]) -> str:
    mensagem = mensagem or ""
    if "emagrecimento" in mensagem:
        return "emagrecimento"
    if "massa" in mensagem:
        return "ganho-massa"
    return "reeducacao"

def lead_mensagem(lead: Lead) -> str:
    # Leads vindos do Supabase guardam a mensagem inteira em detalhes
    if lead.detalhes and lead.detalhes.startswith(MENSAGEM_PREFIXO):
        return lead.detalhes
    return encode_mensagem(lead.objetivo, lead.detalhes)

def lead_to_row(lead: Lead) -> Dict:
    return {
        "id": lead.id,
        "nome": lead.nome,
        "email": lead.email,
        "telefone": lead.telefone,
        "mensagem": lead_mensagem(lead),
        "status": lead.status,
        "created_at": lead.data,
    }

def payload_to_lead_row(payload: Dict) -> Dict:
    """Row for a validated form submission (objetivo is free text here)."""
    return {
        "nome": payload["nome"],
        "email": payload["email"],
        "telefone": payload["telefone"],
        "mensagem": encode_mensagem(payload["objetivo"], payload.get("detalhes")),
    }

def row_to_lead(row: LeadRow, fallback_id: Optional[str] = None) -> Lead:
    return Lead(
        id=str(row.id) if row.id is not None else (fallback_id or ""),
        nome=row.nome,
        email=row.email,
        telefone=row.telefone,
        objetivo=decode_objetivo(row.mensagem),
        detalhes=row.mensagem or None,
        data=row.created_at or agora_iso(),
        status=row.status if row.status in LEAD_STATUS else "novo",
    )

def rows_to_leads(rows: Iterable[Dict]) -> List[Lead]:
    return [row_to_lead(row) for row in parse_rows(LeadRow, rows)]

def lead_patch(body: Dict) -> Dict:
    patch = {}
    if body.get("status"):
        patch["status"] = body["status"]
    if body.get("prioridade"):
        patch["prioridade"] = body["prioridade"]
    return patch

# Depoimentos

def derive_iniciais(nome: Optional[str]) -> str:
    partes = (nome or "").split()
    return "".join(parte[0] for parte in partes).upper()[:2]

def _estrelas(avaliacao) -> int:
    try:
        estrelas = int(avaliacao or 0)
    except (TypeError, ValueError):
        return 5
    if not estrelas:
        return 5
    return min(max(estrelas, 1), 5)

def row_to_depoimento(row: DepoimentoRow) -> Depoimento:
    return Depoimento(
        id=str(row.id) if row.id is not None else "",
        nome=row.nome,
        iniciais=derive_iniciais(row.nome),
        texto=row.depoimento,
        resultado=RESULTADO_PADRAO,
        estrelas=_estrelas(row.avaliacao),
        ativo=row.aprovado,
    )

def rows_to_depoimentos(rows: Iterable[Dict]) -> List[Depoimento]:
    return [row_to_depoimento(row) for row in parse_rows(DepoimentoRow, rows)]

def depoimento_to_row(depoimento: Depoimento, token: Optional[str] = None) -> Dict:
    # resultado não tem coluna e é descartado
    row = {
        "nome": depoimento.nome,
        "depoimento": depoimento.texto,
        "avaliacao": depoimento.estrelas,
        "aprovado": depoimento.ativo,
    }
    if token:
        row["token"] = token
    return row

def depoimento_patch(body: Dict) -> Dict:
    patch = {}
    if body.get("nome"):
        patch["nome"] = body["nome"]
    if body.get("texto"):
        patch["depoimento"] = body["texto"]
    if body.get("estrelas"):
        patch["avaliacao"] = _estrelas(body["estrelas"])
    if isinstance(body.get("ativo"), bool):
        patch["aprovado"] = body["ativo"]
    if isinstance(body.get("aprovado"), bool):
        patch["aprovado"] = body["aprovado"]
    return patch

# Configuração do site

def row_to_config(row: Optional[SiteConfigRow], base: ConfigSite) -> ConfigSite:
    config = base.model_copy(deep=True)
    if row is not None and row.titulo:
        config.nomeSite = row.titulo
    return config

def config_to_row(config: ConfigSite) -> Dict:
    return {
        "id": 1,
        "titulo": config.nomeSite,
        "logo_url": None,
        "consulta_imagem_url": None,
        "nutricionista_imagem_url": None,
    }
