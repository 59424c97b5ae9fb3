# tools/fallback_store.py
import json
import os
import tempfile
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Type
from pydantic import BaseModel, ValidationError
from models.lead_data import Lead
from models.depoimento import Depoimento
from models.site_config import ConfigSite
from models.sample_data import leads_iniciais, depoimentos_iniciais, config_inicial
from utils.logging_setup import setup_logging

logger = setup_logging()

STORAGE_KEYS = {
    "leads": "nutri-leads",
    "depoimentos": "nutri-depoimentos",
    "config": "nutri-config",
}

_ultimo_id = 0

def novo_id_local() -> str:
    """Id derivado do relógio em milissegundos, sempre crescente dentro do processo."""
    global _ultimo_id
    candidato = int(time.time() * 1000)
    if candidato <= _ultimo_id:
        candidato = _ultimo_id + 1
    _ultimo_id = candidato
    return str(candidato)

class JsonFileStorage:
    """Key/value persistence in a single JSON file, used as the durable local mirror."""

    def __init__(self, path: str):
        self.path = path

    def _read_all(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Não foi possível ler {self.path}: {str(e)}")
            return {}

    def get_item(self, key: str) -> Any:
        return self._read_all().get(key)

    def set_item(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Falha ao gravar {key} em {self.path}: {str(e)}")

class CacheState:
    """Estado em memória dos três conjuntos de dados. Coleções são sempre substituídas inteiras."""

    def __init__(self):
        self.leads: List[Lead] = []
        self.depoimentos: List[Depoimento] = []
        self.config: Optional[ConfigSite] = None
        self.initialized = False
        self.last_update: Optional[str] = None

class FallbackStore:
    """
    Local mirror of leads, testimonials and site config.

    Hydrates from durable storage on first access and falls back to the
    static sample data when nothing was stored yet. Every write replaces the
    whole collection and is mirrored to storage when one is configured.
    """

    def __init__(self, storage: Optional[JsonFileStorage] = None, state: Optional[CacheState] = None):
        self.storage = storage
        self.state = state or CacheState()

    def _load_list(self, slot: str, model: Type[BaseModel], seed: Callable[[], List]) -> List:
        raw = self.storage.get_item(STORAGE_KEYS[slot]) if self.storage else None
        if not isinstance(raw, list):
            return seed()
        items = []
        for item in raw:
            try:
                items.append(model.model_validate(item))
            except ValidationError:
                logger.warning(f"Ignorando item inválido em {STORAGE_KEYS[slot]}: {item!r}")
        return items

    def _load_config(self) -> ConfigSite:
        raw = self.storage.get_item(STORAGE_KEYS["config"]) if self.storage else None
        if not isinstance(raw, dict):
            return config_inicial()
        try:
            return ConfigSite.model_validate(raw)
        except ValidationError:
            logger.warning("Configuração salva inválida, usando padrão")
            return config_inicial()

    def initialize(self, force: bool = False) -> None:
        if self.state.initialized and not force:
            return
        self.state.leads = self._load_list("leads", Lead, leads_iniciais)
        self.state.depoimentos = self._load_list("depoimentos", Depoimento, depoimentos_iniciais)
        self.state.config = self._load_config()
        self.state.initialized = True
        self._touch()
        logger.debug(f"Fallback store inicializado: {len(self.state.leads)} leads, {len(self.state.depoimentos)} depoimentos")

    def reset(self) -> None:
        self.state.initialized = False
        self.initialize()

    def _touch(self) -> None:
        self.state.last_update = datetime.now(timezone.utc).isoformat()

    def _persist(self, slot: str, value: Any) -> None:
        if self.storage:
            self.storage.set_item(STORAGE_KEYS[slot], value)

    # Leitura síncrona

    def get_leads(self) -> List[Lead]:
        self.initialize()
        return [lead.model_copy() for lead in self.state.leads]

    def get_depoimentos(self) -> List[Depoimento]:
        self.initialize()
        return [dep.model_copy() for dep in self.state.depoimentos]

    def get_config(self) -> ConfigSite:
        self.initialize()
        return self.state.config.model_copy(deep=True)

    @property
    def last_update(self) -> Optional[str]:
        return self.state.last_update

    # Escrita

    def set_leads(self, leads: List[Lead]) -> None:
        self.initialize()
        self.state.leads = list(leads)
        self._touch()
        self._persist("leads", [lead.model_dump() for lead in self.state.leads])

    def set_depoimentos(self, depoimentos: List[Depoimento]) -> None:
        self.initialize()
        self.state.depoimentos = list(depoimentos)
        self._touch()
        self._persist("depoimentos", [dep.model_dump() for dep in self.state.depoimentos])

    def set_config(self, config: ConfigSite) -> None:
        self.initialize()
        self.state.config = config.model_copy(deep=True)
        self._touch()
        self._persist("config", self.state.config.model_dump())

    def prepend_lead(self, lead: Lead) -> None:
        self.set_leads([lead] + [item for item in self.get_leads() if item.id != lead.id])

    def prepend_depoimento(self, depoimento: Depoimento) -> None:
        self.set_depoimentos([depoimento] + [item for item in self.get_depoimentos() if item.id != depoimento.id])
