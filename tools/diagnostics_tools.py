# tools/diagnostics_tools.py
import platform
import time
from datetime import datetime
from typing import Dict, Mapping, Tuple
import aiohttp
from config.config import APP_ENV
from tools.field_mapper import agora_iso
from tools.supabase_tools import ConnectorError, SupabaseConnector
from utils.logging_setup import setup_logging

logger = setup_logging()

MISSING_TABLE_CODES = ("PGRST116", "42P01")

def collect_diagnostics(connector: SupabaseConnector, headers: Mapping[str, str]) -> Dict:
    """Environment snapshot. Credentials only appear as presence flags and short prefixes."""
    return {
        "timestamp": agora_iso(),
        "environment": APP_ENV,
        "supabase": {
            "hasUrl": bool(connector.url),
            "hasKey": bool(connector.key),
            "configured": connector.is_configured(),
            "urlPrefix": connector.url_prefix,
            "keyPrefix": connector.key_prefix,
        },
        "headers": {
            "userAgent": headers.get("user-agent", ""),
            "host": headers.get("host", ""),
            "origin": headers.get("origin", ""),
            "referer": headers.get("referer", ""),
        },
        "server": {
            "platform": platform.system().lower(),
            "pythonVersion": platform.python_version(),
            "timezone": datetime.now().astimezone().tzname(),
        },
    }

async def test_connection(connector: SupabaseConnector) -> Dict:
    if not connector.is_configured():
        return {"success": False, "error": "Supabase não configurado"}
    try:
        total = await connector.count("leads")
        return {"success": True, "message": "Conexão funcionando", "count": total}
    except ConnectorError as e:
        return {"success": False, "error": e.message, "details": e.to_dict()}

async def check_tables(connector: SupabaseConnector) -> Dict:
    if not connector.is_configured():
        return {"success": False, "error": "Supabase não configurado"}
    try:
        await connector.query("leads", columns="id", limit=1)
        return {"success": True, "message": "Tabelas verificadas"}
    except ConnectorError as e:
        if e.code in MISSING_TABLE_CODES:
            logger.warning("Tabela leads não encontrada - pode precisar ser criada")
            return {
                "success": False,
                "error": "Tabela leads não existe",
                "suggestion": "Execute o SQL de criação das tabelas no Supabase",
            }
        return {"success": False, "error": e.message}

async def insert_probe(connector: SupabaseConnector) -> Dict:
    """Insere um lead de teste e remove em seguida. Levanta ConnectorError se o insert falhar."""
    test_data = {
        "nome": "Teste de Conexão",
        "email": "teste@conexao.com",
        "telefone": "(00) 00000-0000",
        "mensagem": f"Teste de conectividade - {agora_iso()}",
    }
    inserted = await connector.insert("leads", test_data)
    cleaned = False
    if inserted.get("id") is not None:
        try:
            await connector.delete("leads", inserted["id"])
            cleaned = True
        except ConnectorError as e:
            logger.error(f"Lead de teste {inserted['id']} não foi removido: {e.message}")
    return {"inserted": bool(inserted), "cleaned": cleaned}

async def probe_leads_endpoint(api_url: str) -> Tuple[int, Dict]:
    """Envia um lead completo para o próprio endpoint de leads e devolve status e corpo."""
    test_lead = {
        "nome": "Teste Produção",
        "email": "teste@producao.com",
        "telefone": "(11) 99999-9999",
        "objetivo": "emagrecimento",
        "detalhes": f"Teste de conectividade em produção - {agora_iso()}",
    }
    logger.info(f"Diagnostics probe: POST {api_url}")
    started = time.monotonic()
    async with aiohttp.ClientSession(headers={"Content-Type": "application/json"}) as session:
        async with session.post(api_url, json=test_lead) as response:
            result = await response.json(content_type=None)
            logger.debug(f"Probe response: {response.status} in {time.monotonic() - started:.2f}s")
            return response.status, result
