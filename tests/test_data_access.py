import pytest
from models.site_config import ConfigSite
from tools.data_access import DataAccess, PersistenceError, row_id
from tools.fallback_store import FallbackStore

PAYLOAD = {
    "nome": "maria souza",
    "email": "maria@x.com",
    "telefone": "11999999999",
    "objetivo": "emagrecimento",
    "detalhes": None,
}


def test_row_id_converts_numeric_strings():
    assert row_id("12") == 12
    assert row_id(" 7 ") == 7
    assert row_id("temp_1") == "temp_1"
    assert row_id(5) == 5


@pytest.mark.asyncio
async def test_offline_add_lead_synthesizes_local_record(offline_access):
    lead = await offline_access.add_lead(PAYLOAD)
    assert lead.status == "novo"
    assert lead.nome == "Maria Souza"
    assert lead.telefone == "(11) 99999-9999"
    assert lead.id.isdigit()
    assert offline_access.cached_leads()[0].id == lead.id


@pytest.mark.asyncio
async def test_online_add_lead_inserts_mapped_row(online_access, fake_db):
    lead = await online_access.add_lead(PAYLOAD)
    stored = fake_db.tables["leads"][0]
    assert stored["mensagem"] == "Objetivo: emagrecimento. Detalhes: Não informado"
    assert "objetivo" not in stored
    assert lead.id == str(stored["id"])
    assert lead.objetivo == "emagrecimento"
    assert online_access.cached_leads()[0].id == lead.id


@pytest.mark.asyncio
async def test_add_lead_backend_failure_still_succeeds(online_access, fake_db):
    fake_db.fail_on = {"insert"}
    lead = await online_access.add_lead(PAYLOAD)
    assert lead.status == "novo"
    assert fake_db.tables["leads"] == []
    assert online_access.cached_leads()[0].id == lead.id


@pytest.mark.asyncio
async def test_add_lead_strict_mode_raises(online_connector, fake_db):
    access = DataAccess(online_connector, FallbackStore(), strict_persistence=True)
    fake_db.fail_on = {"insert"}
    with pytest.raises(PersistenceError):
        await access.add_lead(PAYLOAD)


@pytest.mark.asyncio
async def test_load_leads_falls_back_to_cache_on_error(online_access, fake_db):
    fake_db.fail_on = {"select"}
    leads = await online_access.load_leads()
    assert [lead.nome for lead in leads] == ["Maria Silva", "João Santos", "Ana Costa"]


@pytest.mark.asyncio
async def test_load_leads_replaces_cache_with_backend_rows(online_access, fake_db):
    fake_db.seed("leads", {"nome": "Lia", "email": "l@x.com", "telefone": "1", "mensagem": "Objetivo: ganho-massa. Detalhes: x"})
    leads = await online_access.load_leads()
    assert [(lead.nome, lead.objetivo) for lead in leads] == [("Lia", "ganho-massa")]
    assert [lead.nome for lead in online_access.cached_leads()] == ["Lia"]


@pytest.mark.asyncio
async def test_load_testimonials_only_approved_with_sample_when_empty(online_access, fake_db):
    fake_db.seed("depoimentos", {"nome": "Pendente", "depoimento": "x", "avaliacao": 4, "aprovado": False})
    approved = await online_access.load_testimonials(only_approved=True, sample_when_empty=True)
    assert [dep.id for dep in approved] == ["1", "2", "3"]
    assert approved[0].nome == "Maria Silva"
    everything = await online_access.load_testimonials()
    assert [dep.nome for dep in everything] == ["Pendente"]


@pytest.mark.asyncio
async def test_load_config_is_idempotent(online_access, fake_db):
    fake_db.seed("site_config", {"id": 1, "titulo": "Clínica Ana"})
    first = await online_access.load_config()
    second = await online_access.load_config()
    assert first.nomeSite == "Clínica Ana"
    assert first.model_dump_json() == second.model_dump_json()


@pytest.mark.asyncio
async def test_save_config_mirrors_full_object_even_when_backend_fails(online_access, fake_db):
    fake_db.fail_on = {"upsert"}
    config = online_access.cached_config().model_copy(update={"nomeSite": "Novo Nome", "heroTitulo": "Outro título"})
    saved = await online_access.save_config(config)
    assert saved.heroTitulo == "Outro título"
    fake_db.fail_on = set()
    loaded = await online_access.load_config()
    assert loaded.heroTitulo == "Outro título"
    assert loaded.nomeSite == "Novo Nome"


@pytest.mark.asyncio
async def test_save_config_upserts_only_title(online_access, fake_db):
    config = online_access.cached_config().model_copy(update={"nomeSite": "Nutri Ana"})
    await online_access.save_config(config)
    assert fake_db.tables["site_config"][0]["titulo"] == "Nutri Ana"
    assert "heroTitulo" not in fake_db.tables["site_config"][0]


@pytest.mark.asyncio
async def test_add_testimonial_pending_and_admin(online_access, fake_db):
    payload = {"nome": "Ana Costa", "texto": "Ótimo", "estrelas": 5, "resultado": "Perdeu 4kg", "token": None}
    pending = await online_access.add_testimonial(payload, aprovado=False)
    admin = await online_access.add_testimonial(payload, aprovado=True, token_prefix="admin")
    rows = fake_db.tables["depoimentos"]
    assert rows[0]["aprovado"] is False and rows[0]["token"].startswith("token_")
    assert rows[1]["aprovado"] is True and rows[1]["token"].startswith("admin_")
    assert "resultado" not in rows[0]
    assert pending.iniciais == "AC"
    assert admin.resultado == "Perdeu 4kg"


@pytest.mark.asyncio
async def test_update_and_delete_lead_mirror_locally(offline_access):
    await offline_access.update_lead("1", {"status": "convertido"})
    assert offline_access.cached_leads()[0].status == "convertido"
    await offline_access.delete_lead("1")
    assert [lead.id for lead in offline_access.cached_leads()] == ["2", "3"]


@pytest.mark.asyncio
async def test_update_lead_failure_policy(online_access, fake_db):
    fake_db.fail_on = {"update"}
    assert await online_access.update_lead("1", {"status": "contatado"}) is None
    with pytest.raises(PersistenceError):
        await online_access.update_lead("1", {"status": "contatado"}, strict=True)


@pytest.mark.asyncio
async def test_save_testimonials_inserts_only_temp_items(online_access, fake_db):
    current = online_access.cached_testimonials()
    novo = current[0].model_copy(update={"id": "temp_1", "nome": "Novo Cliente"})
    saved = await online_access.save_testimonials([novo] + current)
    assert len(fake_db.tables["depoimentos"]) == 1
    assert fake_db.tables["depoimentos"][0]["aprovado"] is True
    assert saved[0].id == str(fake_db.tables["depoimentos"][0]["id"])
    assert [dep.id for dep in online_access.cached_testimonials()] == [dep.id for dep in saved]


@pytest.mark.asyncio
async def test_sync_rehydrates(offline_access):
    await offline_access.delete_lead("1")
    offline_access.sync()
    assert len(offline_access.cached_leads()) == 3


@pytest.mark.asyncio
async def test_load_all_tolerates_partial_failure(online_access, fake_db):
    fake_db.missing_tables = {"leads"}
    data = await online_access.load_all()
    assert len(data["leads"]) == 3
    assert len(data["depoimentos"]) == 3
    assert ConfigSite.model_validate(data["config"]).nomeSite == "NutriVida"
    assert data["lastUpdate"]
