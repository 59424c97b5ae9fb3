# tools/data_access.py
import asyncio
from typing import Any, Dict, List, Optional
from models.lead_data import Lead, LeadRow, OBJETIVOS, LEAD_STATUS
from models.depoimento import Depoimento, DepoimentoRow, RESULTADO_PADRAO
from models.site_config import ConfigSite, SiteConfigRow
from models.sample_data import depoimentos_iniciais
from tools.field_mapper import (
    agora_iso, config_to_row, decode_objetivo, depoimento_to_row, derive_iniciais,
    encode_mensagem, gerar_token, parse_rows, payload_to_lead_row, row_to_config,
    row_to_depoimento, row_to_lead, rows_to_depoimentos, rows_to_leads,
)
from tools.fallback_store import FallbackStore, novo_id_local
from tools.supabase_tools import SupabaseConnector
from utils.validation import formatar_nome, formatar_telefone
from utils.logging_setup import setup_logging

logger = setup_logging()

class PersistenceError(Exception):
    """Falha de escrita no Supabase, levantada apenas com strict_persistence."""

def row_id(value: Any) -> Any:
    # O painel manda ids como string; a tabela usa inteiros
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return value

class DataAccess:
    """
    Leitura e escrita de leads, depoimentos e configuração do site.

    Todas as operações tentam o Supabase primeiro e caem no FallbackStore em
    caso de falha, sem propagar erro para quem chamou. Com
    `strict_persistence=True` as falhas de escrita viram PersistenceError.
    """

    def __init__(self, connector: SupabaseConnector, store: FallbackStore, strict_persistence: bool = False):
        self.connector = connector
        self.store = store
        self.strict_persistence = strict_persistence

    def is_online(self) -> bool:
        return self.connector.is_configured()

    def _write_failed(self, action: str, e: Exception, strict: Optional[bool] = None) -> None:
        logger.error(f"Erro ao {action}: {str(e)}")
        if strict is None:
            strict = self.strict_persistence
        if strict:
            raise PersistenceError(f"Erro ao {action}: {str(e)}") from e

    # Leitura

    async def load_leads(self) -> List[Lead]:
        self.store.initialize()
        if not self.is_online():
            return self.store.get_leads()
        try:
            rows = await self.connector.query("leads", order="created_at", desc=True)
            leads = rows_to_leads(rows)
            self.store.set_leads(leads)
            return leads
        except Exception as e:
            logger.error(f"Erro ao carregar leads, usando dados locais: {str(e)}")
            return self.store.get_leads()

    async def load_testimonials(self, only_approved: bool = False, sample_when_empty: bool = False) -> List[Depoimento]:
        self.store.initialize()
        depoimentos = None
        if self.is_online():
            try:
                filters = {"aprovado": True} if only_approved else None
                rows = await self.connector.query("depoimentos", filters=filters, order="created_at", desc=True)
                depoimentos = rows_to_depoimentos(rows)
                if not only_approved:
                    self.store.set_depoimentos(depoimentos)
            except Exception as e:
                logger.error(f"Erro ao carregar depoimentos, usando dados locais: {str(e)}")
        if depoimentos is None:
            depoimentos = self.store.get_depoimentos()
            if only_approved:
                depoimentos = [dep for dep in depoimentos if dep.ativo]
        if sample_when_empty and not depoimentos:
            return depoimentos_iniciais()
        return depoimentos

    async def load_config(self) -> ConfigSite:
        base = self.store.get_config()
        if not self.is_online():
            return base
        try:
            rows = await self.connector.query("site_config", limit=1)
            parsed = parse_rows(SiteConfigRow, rows)
            return row_to_config(parsed[0] if parsed else None, base)
        except Exception as e:
            logger.error(f"Erro ao carregar configuração, usando dados locais: {str(e)}")
            return base

    async def load_all(self) -> Dict:
        leads, depoimentos, config = await asyncio.gather(
            self.load_leads(),
            self.load_testimonials(only_approved=True, sample_when_empty=True),
            self.load_config(),
        )
        return {
            "leads": [lead.model_dump() for lead in leads],
            "depoimentos": [dep.model_dump() for dep in depoimentos],
            "config": config.model_dump(),
            "lastUpdate": agora_iso(),
        }

    # Acesso síncrono ao espelho local

    def cached_leads(self) -> List[Lead]:
        return self.store.get_leads()

    def cached_testimonials(self) -> List[Depoimento]:
        return self.store.get_depoimentos()

    def cached_config(self) -> ConfigSite:
        return self.store.get_config()

    def sync(self) -> None:
        self.store.reset()

    # Leads

    def _lead_local(self, payload: Dict) -> Lead:
        objetivo = payload["objetivo"]
        if objetivo not in OBJETIVOS:
            objetivo = decode_objetivo(encode_mensagem(objetivo, payload.get("detalhes")))
        return Lead(
            id=novo_id_local(),
            nome=formatar_nome(payload["nome"]),
            email=payload["email"],
            telefone=formatar_telefone(payload["telefone"]),
            objetivo=objetivo,
            detalhes=payload.get("detalhes"),
            data=agora_iso(),
            status="novo",
        )

    async def add_lead(self, payload: Dict) -> Lead:
        """Registra um lead já validado. Sempre devolve um Lead, salvo em modo estrito."""
        self.store.initialize()
        if self.is_online():
            try:
                inserted = await self.connector.insert("leads", payload_to_lead_row(payload))
                parsed = parse_rows(LeadRow, [inserted] if inserted else [])
                if parsed:
                    lead = row_to_lead(parsed[0], fallback_id=novo_id_local())
                    self.store.prepend_lead(lead)
                    return lead
                logger.warning("Insert de lead não retornou a linha criada, registrando localmente")
            except Exception as e:
                self._write_failed("salvar lead", e)
        else:
            logger.info(f"Lead recebido (modo offline): {payload.get('email')}")
        lead = self._lead_local(payload)
        self.store.prepend_lead(lead)
        return lead

    def _mirror_lead_patch(self, lead_id: Any, patch: Dict) -> None:
        status = patch.get("status")
        if status not in LEAD_STATUS:
            return
        leads = [
            lead.model_copy(update={"status": status}) if lead.id == str(lead_id) else lead
            for lead in self.store.get_leads()
        ]
        self.store.set_leads(leads)

    async def update_lead(self, lead_id: Any, patch: Dict, strict: Optional[bool] = None) -> Optional[Dict]:
        self._mirror_lead_patch(lead_id, patch)
        if not self.is_online() or not patch:
            return None
        try:
            return await self.connector.update("leads", row_id(lead_id), patch)
        except Exception as e:
            self._write_failed(f"atualizar lead {lead_id}", e, strict)
            return None

    async def delete_lead(self, lead_id: Any) -> bool:
        self.store.set_leads([lead for lead in self.store.get_leads() if lead.id != str(lead_id)])
        if not self.is_online():
            return False
        try:
            await self.connector.delete("leads", row_id(lead_id))
            return True
        except Exception as e:
            self._write_failed(f"excluir lead {lead_id}", e)
            return False

    def save_leads(self, leads: List[Lead]) -> None:
        # A tabela não guarda status por lead; a lista inteira fica só no espelho local
        self.store.set_leads(leads)

    # Depoimentos

    async def add_testimonial(self, payload: Dict, aprovado: bool = False, token_prefix: str = "token") -> Depoimento:
        self.store.initialize()
        resultado = payload.get("resultado") or RESULTADO_PADRAO
        if self.is_online():
            row = {
                "token": payload.get("token") or gerar_token(token_prefix),
                "nome": payload["nome"],
                "depoimento": payload["texto"],
                "avaliacao": payload["estrelas"],
                "aprovado": aprovado,
            }
            try:
                inserted = await self.connector.insert("depoimentos", row)
                parsed = parse_rows(DepoimentoRow, [inserted] if inserted else [])
                if parsed:
                    depoimento = row_to_depoimento(parsed[0]).model_copy(update={"resultado": resultado})
                    if not depoimento.id:
                        depoimento.id = novo_id_local()
                    self.store.prepend_depoimento(depoimento)
                    return depoimento
                logger.warning("Insert de depoimento não retornou a linha criada, registrando localmente")
            except Exception as e:
                self._write_failed("salvar depoimento", e)
        else:
            logger.info(f"Depoimento recebido (modo offline) de {payload['nome']}")
        depoimento = Depoimento(
            id=novo_id_local(),
            nome=payload["nome"],
            iniciais=derive_iniciais(payload["nome"]),
            texto=payload["texto"],
            resultado=resultado,
            estrelas=payload["estrelas"],
            ativo=aprovado,
        )
        self.store.prepend_depoimento(depoimento)
        return depoimento

    def _mirror_testimonial_patch(self, depoimento_id: Any, patch: Dict) -> None:
        changes = {}
        if "nome" in patch:
            changes["nome"] = patch["nome"]
            changes["iniciais"] = derive_iniciais(patch["nome"])
        if "depoimento" in patch:
            changes["texto"] = patch["depoimento"]
        if "avaliacao" in patch:
            changes["estrelas"] = patch["avaliacao"]
        if "aprovado" in patch:
            changes["ativo"] = patch["aprovado"]
        if not changes:
            return
        depoimentos = [
            dep.model_copy(update=changes) if dep.id == str(depoimento_id) else dep
            for dep in self.store.get_depoimentos()
        ]
        self.store.set_depoimentos(depoimentos)

    async def update_testimonial(self, depoimento_id: Any, patch: Dict) -> Optional[Dict]:
        """`patch` usa os nomes de coluna (nome, depoimento, avaliacao, aprovado)."""
        self._mirror_testimonial_patch(depoimento_id, patch)
        if not self.is_online() or not patch:
            return None
        try:
            return await self.connector.update("depoimentos", row_id(depoimento_id), patch)
        except Exception as e:
            self._write_failed(f"atualizar depoimento {depoimento_id}", e)
            return None

    async def delete_testimonial(self, depoimento_id: Any) -> bool:
        self.store.set_depoimentos([dep for dep in self.store.get_depoimentos() if dep.id != str(depoimento_id)])
        if not self.is_online():
            return False
        try:
            await self.connector.delete("depoimentos", row_id(depoimento_id))
            return True
        except Exception as e:
            self._write_failed(f"excluir depoimento {depoimento_id}", e)
            return False

    async def save_testimonials(self, depoimentos: List[Depoimento]) -> List[Depoimento]:
        """Insere no Supabase apenas os depoimentos novos (id `temp_...`) e espelha a lista inteira."""
        saved = []
        falhas = []
        for depoimento in depoimentos:
            if not depoimento.id.startswith("temp_") or not self.is_online():
                saved.append(depoimento)
                continue
            row = depoimento_to_row(depoimento.model_copy(update={"ativo": True}), token=gerar_token())
            try:
                inserted = await self.connector.insert("depoimentos", row)
                parsed = parse_rows(DepoimentoRow, [inserted] if inserted else [])
                if parsed and parsed[0].id is not None:
                    depoimento = depoimento.model_copy(update={"id": str(parsed[0].id), "ativo": True})
            except Exception as e:
                logger.error(f"Erro ao inserir depoimento {depoimento.id}: {str(e)}")
                falhas.append(e)
            saved.append(depoimento)
        self.store.set_depoimentos(saved)
        if falhas and self.strict_persistence:
            raise PersistenceError(f"Erro ao inserir {len(falhas)} depoimento(s): {str(falhas[0])}")
        return saved

    # Configuração

    async def save_config(self, config: ConfigSite) -> ConfigSite:
        # Só nomeSite vai para o Supabase; o objeto completo fica no espelho local
        self.store.set_config(config)
        if self.is_online():
            try:
                await self.connector.upsert("site_config", config_to_row(config))
            except Exception as e:
                self._write_failed("salvar configuração", e)
        return self.store.get_config()
