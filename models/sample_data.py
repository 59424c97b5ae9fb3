# models/sample_data.py
from typing import List
from models.lead_data import Lead
from models.depoimento import Depoimento
from models.site_config import ConfigSite

LEADS_INICIAIS = [
    {
        "id": "1",
        "nome": "Maria Silva",
        "email": "maria@email.com",
        "telefone": "(11) 99999-9999",
        "objetivo": "emagrecimento",
        "detalhes": "Preciso perder 10kg para meu casamento",
        "data": "2024-01-15T14:30:00.000Z",
        "status": "novo",
    },
    {
        "id": "2",
        "nome": "João Santos",
        "email": "joao@email.com",
        "telefone": "(11) 88888-8888",
        "objetivo": "ganho-massa",
        "detalhes": "Quero ganhar massa muscular para competir",
        "data": "2024-01-14T09:15:00.000Z",
        "status": "contatado",
    },
    {
        "id": "3",
        "nome": "Ana Costa",
        "email": "ana@email.com",
        "telefone": "(11) 77777-7777",
        "objetivo": "reeducacao",
        "detalhes": "Tenho diabetes e preciso melhorar minha alimentação",
        "data": "2024-01-13T16:45:00.000Z",
        "status": "agendado",
    },
]

DEPOIMENTOS_INICIAIS = [
    {
        "id": "1",
        "nome": "Maria Silva",
        "iniciais": "MS",
        "texto": "Perdi 15kg em 4 meses seguindo o plano alimentar. Me sinto muito mais disposta e saudável!",
        "resultado": "Perdeu 15kg",
        "estrelas": 5,
        "ativo": True,
    },
    {
        "id": "2",
        "nome": "João Santos",
        "iniciais": "JS",
        "texto": "Consegui ganhar massa muscular de forma saudável. O acompanhamento foi fundamental para meus resultados.",
        "resultado": "Ganhou 8kg de massa magra",
        "estrelas": 5,
        "ativo": True,
    },
    {
        "id": "3",
        "nome": "Ana Costa",
        "iniciais": "AC",
        "texto": "Aprendi a me alimentar melhor e agora tenho muito mais energia no dia a dia. Recomendo!",
        "resultado": "Melhorou disposição e saúde",
        "estrelas": 5,
        "ativo": True,
    },
]

CONFIG_INICIAL = {
    "nomeSite": "NutriVida",
    "telefone": "(11) 98244-9680",
    "email": "contato@nutrivida.com",
    "endereco": "São Paulo, SP",
    "horarioAtendimento": "Segunda a Sexta: 8h às 18h\nSábado: 8h às 12h",
    "crn": "12345",
    "sobreTexto": (
        "Sou formada em Nutrição pela Universidade Federal, com especialização em Nutrição Clínica e Esportiva. "
        "Há mais de 5 anos ajudo pessoas a transformarem sua relação com a comida e alcançarem seus objetivos de saúde."
    ),
    "heroTitulo": "Transforme sua saúde com nutrição personalizada",
    "heroSubtitulo": (
        "Nutricionista especializada em emagrecimento saudável, ganho de massa muscular e reeducação alimentar. "
        "Planos personalizados que cabem na sua rotina."
    ),
    "estatisticas": {"clientes": "500+", "sucesso": "95%", "experiencia": "5+"},
}

# Sempre devolvem cópias novas para que ninguém altere as sementes
def leads_iniciais() -> List[Lead]:
    return [Lead(**item) for item in LEADS_INICIAIS]

def depoimentos_iniciais() -> List[Depoimento]:
    return [Depoimento(**item) for item in DEPOIMENTOS_INICIAIS]

def config_inicial() -> ConfigSite:
    return ConfigSite(**CONFIG_INICIAL)
