# models/site_config.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union

class Estatisticas(BaseModel):
    clientes: str = "500+"
    sucesso: str = "95%"
    experiencia: str = "5+"

class ConfigSite(BaseModel):
    """Conteúdo do site. Só `nomeSite` tem coluna no Supabase (`titulo`)."""
    nomeSite: str
    telefone: str
    email: str
    endereco: str
    horarioAtendimento: str
    crn: str = ""
    sobreTexto: str
    heroTitulo: str
    heroSubtitulo: str
    estatisticas: Estatisticas = Field(default_factory=Estatisticas)

class SiteConfigRow(BaseModel):
    """Linha única (id=1) da tabela `site_config`."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[int, str]] = None
    titulo: Optional[str] = None
    logo_url: Optional[str] = None
    consulta_imagem_url: Optional[str] = None
    nutricionista_imagem_url: Optional[str] = None
    updated_at: Optional[str] = None
