from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Any, Dict, List
from pydantic import ValidationError
from config.config import SUPABASE_URL, SUPABASE_KEY, APP_ENV, STRICT_PERSISTENCE, LOCAL_STORE_PATH, ALLOWED_ORIGINS
from models.lead_data import Lead, LeadRow
from models.depoimento import Depoimento, DepoimentoRow
from models.site_config import ConfigSite
from models.sample_data import depoimentos_iniciais
from tools.supabase_tools import SupabaseConnector, ConnectorError
from tools.fallback_store import FallbackStore, JsonFileStorage
from tools.data_access import DataAccess, PersistenceError
from tools.field_mapper import (
    agora_iso, depoimento_patch, derive_iniciais, lead_patch, lead_to_row,
    parse_rows, payload_to_lead_row,
)
from tools.diagnostics_tools import collect_diagnostics, check_tables, test_connection, insert_probe, probe_leads_endpoint
from utils.validation import PayloadValidationError, require_id, validate_lead_payload, validate_depoimento_payload
from utils.logging_setup import setup_logging


logger = setup_logging()
app = FastAPI(title="NutriVida API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Log requests and responses
@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Request: {request.method} {request.url}")
    response = await call_next(request)
    logger.info(f"Response status: {response.status_code}")
    return response

connector = SupabaseConnector(SUPABASE_URL, SUPABASE_KEY)
data_access = DataAccess(
    connector,
    FallbackStore(JsonFileStorage(LOCAL_STORE_PATH) if LOCAL_STORE_PATH else None),
    strict_persistence=STRICT_PERSISTENCE,
)

# Dependencies
def get_connector() -> SupabaseConnector:
    return connector

def get_data_access() -> DataAccess:
    return data_access

@app.on_event("startup")
async def startup_event():
    data_access.store.initialize()
    modo = "supabase" if connector.is_configured() else "offline"
    logger.info(f"NutriVida API iniciada ({APP_ENV}), modo {modo}, strict_persistence={STRICT_PERSISTENCE}")

@app.exception_handler(PayloadValidationError)
async def validation_error_handler(request: Request, exc: PayloadValidationError):
    logger.warning(f"Requisição inválida em {request.url.path}: {exc.message}")
    return JSONResponse(status_code=400, content={"success": False, "error": exc.message})

@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})

async def read_body(request: Request) -> Dict:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}

def depoimento_row_view(depoimento: Depoimento) -> Dict:
    return {
        "id": depoimento.id,
        "nome": depoimento.nome,
        "depoimento": depoimento.texto,
        "avaliacao": depoimento.estrelas,
        "aprovado": depoimento.ativo,
    }

def depoimentos_locais_aprovados(data_access: DataAccess) -> List[Dict]:
    depoimentos = [dep for dep in data_access.cached_testimonials() if dep.ativo] or depoimentos_iniciais()
    return [depoimento_row_view(dep) for dep in depoimentos]

# Leads (site)
@app.get("/leads")
async def get_leads(connector: SupabaseConnector = Depends(get_connector), data_access: DataAccess = Depends(get_data_access)):
    if connector.is_configured():
        try:
            rows = await connector.query("leads", order="created_at", desc=True)
            return {"success": True, "data": [row.model_dump() for row in parse_rows(LeadRow, rows)], "source": "supabase"}
        except ConnectorError as e:
            logger.error(f"Erro ao buscar leads: {e.message}")
    return {"success": True, "data": [lead_to_row(lead) for lead in data_access.cached_leads()], "source": "fallback"}

@app.post("/leads")
async def create_lead(request: Request, data_access: DataAccess = Depends(get_data_access)):
    body = await read_body(request)
    payload = validate_lead_payload(body)
    lead = await data_access.add_lead(payload)
    if data_access.is_online():
        message = "Solicitação enviada com sucesso! Entraremos em contato em breve."
    else:
        message = "Solicitação recebida com sucesso! Entraremos em contato em breve."
    return {
        "success": True,
        "message": message,
        "data": {"id": lead.id, **payload_to_lead_row(payload), "status": lead.status, "created_at": lead.data},
    }

@app.patch("/leads")
async def update_lead(request: Request, data_access: DataAccess = Depends(get_data_access)):
    body = await read_body(request)
    lead_id = require_id(body)
    updated = await data_access.update_lead(lead_id, lead_patch(body))
    return {
        "success": True,
        "message": "Lead atualizado com sucesso!",
        "data": updated or {"id": lead_id, "status": body.get("status"), "prioridade": body.get("prioridade")},
    }

@app.delete("/leads")
async def delete_lead(request: Request, data_access: DataAccess = Depends(get_data_access)):
    body = await read_body(request)
    lead_id = require_id(body)
    await data_access.delete_lead(lead_id)
    return {"success": True, "message": "Lead excluído com sucesso!"}

# Leads (painel admin)
@app.get("/admin/leads")
async def admin_get_leads(data_access: DataAccess = Depends(get_data_access)):
    leads = await data_access.load_leads()
    return {
        "success": True,
        "data": [lead.model_dump() for lead in leads],
        "source": "supabase" if data_access.is_online() else "fallback",
    }

@app.patch("/admin/leads")
async def admin_update_lead(request: Request, data_access: DataAccess = Depends(get_data_access)):
    body = await read_body(request)
    lead_id = require_id(body)
    if not data_access.is_online():
        await data_access.update_lead(lead_id, lead_patch(body))
        return {"success": True, "message": "Lead atualizado com sucesso! (modo offline)"}
    # Este endpoint sempre reporta falha real do Supabase, independente do modo estrito
    try:
        updated = await data_access.update_lead(lead_id, lead_patch(body), strict=True)
    except PersistenceError as e:
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
    return {"success": True, "message": "Status do lead atualizado com sucesso!", "data": updated}

@app.delete("/admin/leads")
async def admin_delete_lead(request: Request, data_access: DataAccess = Depends(get_data_access)):
    body = await read_body(request)
    lead_id = require_id(body)
    await data_access.delete_lead(lead_id)
    suffix = "" if data_access.is_online() else " (modo offline)"
    return {"success": True, "message": f"Lead excluído com sucesso!{suffix}"}

# Depoimentos (site)
@app.get("/depoimentos")
async def get_depoimentos(connector: SupabaseConnector = Depends(get_connector), data_access: DataAccess = Depends(get_data_access)):
    if connector.is_configured():
        try:
            rows = await connector.query("depoimentos", filters={"aprovado": True}, order="created_at", desc=True)
            parsed = parse_rows(DepoimentoRow, rows)
            if parsed:
                return {"success": True, "data": [row.model_dump(exclude={"token"}) for row in parsed], "source": "supabase"}
            # Nenhum aprovado ainda: o site mostra os exemplos
            return {"success": True, "data": [depoimento_row_view(dep) for dep in depoimentos_iniciais()], "source": "sample"}
        except ConnectorError as e:
            logger.error(f"Erro ao buscar depoimentos: {e.message}")
    return {"success": True, "data": depoimentos_locais_aprovados(data_access), "source": "fallback"}

@app.post("/depoimentos")
async def create_depoimento(request: Request, data_access: DataAccess = Depends(get_data_access)):
    body = await read_body(request)
    payload = validate_depoimento_payload(body)
    depoimento = await data_access.add_testimonial(payload, aprovado=False, token_prefix="token")
    if data_access.is_online():
        message = "Depoimento enviado com sucesso! Será analisado e publicado em breve."
    else:
        message = "Depoimento enviado com sucesso! Obrigado pelo seu feedback."
    return {
        "success": True,
        "message": message,
        "data": {**depoimento_row_view(depoimento), "created_at": agora_iso()},
    }

@app.patch("/depoimentos")
async def update_depoimento(request: Request, data_access: DataAccess = Depends(get_data_access)):
    body = await read_body(request)
    depoimento_id = require_id(body)
    patch = {"aprovado": body["aprovado"]} if isinstance(body.get("aprovado"), bool) else {}
    updated = await data_access.update_testimonial(depoimento_id, patch)
    return {
        "success": True,
        "message": "Depoimento atualizado com sucesso!",
        "data": updated or {"id": depoimento_id, "aprovado": body.get("aprovado")},
    }

@app.delete("/depoimentos")
async def delete_depoimento(request: Request, data_access: DataAccess = Depends(get_data_access)):
    body = await read_body(request)
    depoimento_id = require_id(body)
    await data_access.delete_testimonial(depoimento_id)
    return {"success": True, "message": "Depoimento excluído com sucesso!"}

# Depoimentos (painel admin)
@app.get("/admin/depoimentos")
async def admin_get_depoimentos(data_access: DataAccess = Depends(get_data_access)):
    depoimentos = await data_access.load_testimonials()
    return {
        "success": True,
        "data": [dep.model_dump() for dep in depoimentos],
        "source": "supabase" if data_access.is_online() else "fallback",
    }

@app.post("/admin/depoimentos")
async def admin_create_depoimento(request: Request, data_access: DataAccess = Depends(get_data_access)):
    body = await read_body(request)
    payload = validate_depoimento_payload(body)
    depoimento = await data_access.add_testimonial(payload, aprovado=True, token_prefix="admin")
    suffix = "" if data_access.is_online() else " (modo offline)"
    return {"success": True, "message": f"Depoimento criado com sucesso!{suffix}", "data": depoimento.model_dump()}

@app.patch("/admin/depoimentos")
async def admin_update_depoimento(request: Request, data_access: DataAccess = Depends(get_data_access)):
    body = await read_body(request)
    depoimento_id = require_id(body)
    updated = await data_access.update_testimonial(depoimento_id, depoimento_patch(body))
    suffix = "" if data_access.is_online() else " (modo offline)"
    return {"success": True, "message": f"Depoimento atualizado com sucesso!{suffix}", "data": updated}

@app.delete("/admin/depoimentos")
async def admin_delete_depoimento(request: Request, data_access: DataAccess = Depends(get_data_access)):
    body = await read_body(request)
    depoimento_id = require_id(body)
    await data_access.delete_testimonial(depoimento_id)
    suffix = "" if data_access.is_online() else " (modo offline)"
    return {"success": True, "message": f"Depoimento excluído com sucesso!{suffix}"}

# Dados agregados
DATA_OPERATIONS = ("ADD_LEAD", "UPDATE_LEADS", "UPDATE_DEPOIMENTOS", "UPDATE_CONFIG")

def _parse_list(model, items: Any) -> List:
    if not isinstance(items, list):
        raise PayloadValidationError("data deve ser uma lista", field="data")
    parsed = []
    for posicao, item in enumerate(items):
        if isinstance(item, dict) and item.get("id") is not None:
            item = {**item, "id": str(item["id"])}
        if isinstance(item, dict) and model is Depoimento and not item.get("iniciais"):
            item = {**item, "iniciais": derive_iniciais(item.get("nome"))}
        try:
            parsed.append(model.model_validate(item))
        except ValidationError:
            logger.warning(f"Item inválido em {model.__name__}: {item!r}")
            raise PayloadValidationError(f"Item inválido na posição {posicao}", field="data")
    return parsed

@app.get("/data")
async def get_data(data_access: DataAccess = Depends(get_data_access)):
    data = await data_access.load_all()
    return {"success": True, "data": data, "source": "supabase" if data_access.is_online() else "fallback"}

@app.post("/data")
async def post_data(request: Request, data_access: DataAccess = Depends(get_data_access)):
    body = await read_body(request)
    operation = body.get("type")
    data = body.get("data")
    if operation not in DATA_OPERATIONS:
        return JSONResponse(status_code=400, content={"success": False, "error": "Tipo de operação inválido"})
    logger.info(f"Data dispatch: {operation}")
    try:
        if operation == "ADD_LEAD":
            await data_access.add_lead(validate_lead_payload(data if isinstance(data, dict) else {}))
        elif operation == "UPDATE_LEADS":
            data_access.save_leads(_parse_list(Lead, data))
        elif operation == "UPDATE_DEPOIMENTOS":
            await data_access.save_testimonials(_parse_list(Depoimento, data))
        elif operation == "UPDATE_CONFIG":
            if not isinstance(data, dict):
                raise PayloadValidationError("data deve ser um objeto", field="data")
            current = data_access.cached_config().model_dump()
            try:
                config = ConfigSite.model_validate({**current, **data})
            except ValidationError:
                raise PayloadValidationError("Configuração inválida", field="data")
            await data_access.save_config(config)
    except PersistenceError as e:
        logger.error(f"Erro ao salvar dados: {str(e)}")
        return JSONResponse(status_code=500, content={"success": False, "error": "Erro ao salvar dados"})
    return await get_data(data_access)

# Teste de conexão
@app.get("/test-connection")
async def get_test_connection(connector: SupabaseConnector = Depends(get_connector)):
    if not (connector.url and connector.key):
        return JSONResponse(status_code=500, content={
            "success": False,
            "error": "Variáveis de ambiente do Supabase não configuradas",
            "details": {"hasUrl": bool(connector.url), "hasKey": bool(connector.key), "environment": APP_ENV},
        })
    try:
        await connector.get_client()
    except ConnectorError as e:
        return JSONResponse(status_code=500, content={
            "success": False,
            "error": "Cliente Supabase não inicializado",
            "details": {"configured": connector.is_configured(), "client": False, "message": e.message},
        })
    tables = await check_tables(connector)
    if "suggestion" in tables:
        return JSONResponse(status_code=500, content={
            "success": False,
            "error": tables["error"],
            "suggestion": tables["suggestion"],
        })
    result = await test_connection(connector)
    if not result["success"]:
        return JSONResponse(status_code=500, content={
            "success": False,
            "error": "Erro ao conectar com Supabase",
            "details": result.get("details", {"message": result.get("error")}),
        })
    return {
        "success": True,
        "message": "Conexão com Supabase funcionando",
        "details": {
            "environment": APP_ENV,
            "timestamp": agora_iso(),
            "supabaseUrl": connector.url_prefix,
            "tablesAccessible": True,
        },
    }

@app.post("/test-connection")
async def post_test_connection(connector: SupabaseConnector = Depends(get_connector)):
    if not connector.is_configured():
        return JSONResponse(status_code=500, content={"success": False, "error": "Supabase não configurado"})
    try:
        details = await insert_probe(connector)
    except ConnectorError as e:
        return JSONResponse(status_code=500, content={
            "success": False,
            "error": "Erro ao inserir dados de teste",
            "details": e.to_dict(),
        })
    return {"success": True, "message": "Teste de inserção funcionando", "details": details}

# Diagnóstico
@app.get("/diagnostics")
async def get_diagnostics(request: Request, connector: SupabaseConnector = Depends(get_connector)):
    return {"success": True, "data": collect_diagnostics(connector, request.headers)}

@app.post("/diagnostics")
async def post_diagnostics(request: Request):
    host = request.headers.get("host", "localhost")
    protocol = request.headers.get("x-forwarded-proto") or request.url.scheme
    api_url = f"{protocol}://{host}/leads"
    try:
        status_code, result = await probe_leads_endpoint(api_url)
    except Exception as e:
        logger.error(f"Diagnostics probe failed: {str(e)}")
        return JSONResponse(status_code=500, content={
            "success": False,
            "error": str(e),
            "details": {"name": type(e).__name__},
        })
    return {
        "success": True,
        "testResult": {
            "apiResponse": result,
            "statusCode": status_code,
            "apiUrl": api_url,
            "timestamp": agora_iso(),
        },
    }
