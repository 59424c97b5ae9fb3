# models/lead_data.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional, Union

OBJETIVOS = ("emagrecimento", "ganho-massa", "reeducacao")
LEAD_STATUS = ("novo", "contatado", "agendado", "convertido")

Objetivo = Literal["emagrecimento", "ganho-massa", "reeducacao"]
LeadStatus = Literal["novo", "contatado", "agendado", "convertido"]

class Lead(BaseModel):
    """Lead no formato usado pelo site e pelo painel admin."""
    id: str = Field(..., description="Identificador do lead (id da linha ou gerado localmente)")
    nome: str = Field(..., description="Nome completo do visitante")
    email: str = Field(..., description="Endereço de e-mail")
    telefone: str = Field(..., description="Telefone ou WhatsApp")
    objetivo: Objetivo = Field(..., description="Objetivo declarado no formulário")
    detalhes: Optional[str] = Field(None, description="Texto livre enviado junto com o objetivo")
    data: str = Field(..., description="Data de criação (ISO-8601)")
    status: LeadStatus = Field("novo", description="Etapa do funil: novo, contatado, agendado, convertido")

class LeadRow(BaseModel):
    """Linha da tabela `leads` no Supabase."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[int, str]] = None
    nome: str
    email: str
    telefone: str
    mensagem: str = ""
    status: Optional[str] = None
    prioridade: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
