# models/depoimento.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union

RESULTADO_PADRAO = "Cliente satisfeito"

class Depoimento(BaseModel):
    """Depoimento no formato exibido no site e editado no painel."""
    id: str = Field(..., description="Identificador do depoimento")
    nome: str = Field(..., description="Nome de quem escreveu")
    iniciais: str = Field("", description="Até duas iniciais derivadas do nome")
    texto: str = Field(..., description="Texto do depoimento")
    resultado: str = Field(RESULTADO_PADRAO, description="Resultado exibido no card; não é persistido")
    estrelas: int = Field(5, ge=1, le=5, description="Avaliação de 1 a 5")
    ativo: bool = Field(True, description="Aprovado para exibição (coluna `aprovado`)")

class DepoimentoRow(BaseModel):
    """Linha da tabela `depoimentos` no Supabase."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[int, str]] = None
    token: Optional[str] = None
    nome: str
    depoimento: str
    avaliacao: Optional[int] = None
    aprovado: bool = False
    created_at: Optional[str] = None
