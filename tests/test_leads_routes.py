LEAD = {"nome": "Maria", "email": "maria@x.com", "telefone": "11999999999", "objetivo": "emagrecimento"}


def test_post_lead_offline(offline_client):
    response = offline_client.post("/leads", json=LEAD)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "novo"
    assert "Objetivo: emagrecimento" in body["data"]["mensagem"]
    assert body["data"]["created_at"]


def test_post_lead_online_persists(online_client, fake_db):
    response = online_client.post("/leads", json={**LEAD, "detalhes": "perder 5kg"})
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert fake_db.tables["leads"][0]["mensagem"] == "Objetivo: emagrecimento. Detalhes: perder 5kg"


def test_post_lead_backend_failure_still_succeeds(online_client, fake_db):
    fake_db.fail_on = {"insert"}
    response = online_client.post("/leads", json=LEAD)
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["data"]["status"] == "novo"


def test_post_lead_strict_mode_reports_failure(strict_client, fake_db):
    fake_db.fail_on = {"insert"}
    response = strict_client.post("/leads", json=LEAD)
    assert response.status_code == 500
    assert response.json()["success"] is False


def test_post_lead_validation(offline_client):
    missing = offline_client.post("/leads", json={**LEAD, "telefone": ""})
    assert missing.status_code == 400
    assert "telefone" in missing.json()["error"]
    bad_email = offline_client.post("/leads", json={**LEAD, "email": "not-an-email"})
    assert bad_email.status_code == 400
    assert bad_email.json() == {"success": False, "error": "Email inválido"}
    no_body = offline_client.post("/leads", content=b"", headers={"Content-Type": "application/json"})
    assert no_body.status_code == 400


def test_get_leads_online_and_fallback(online_client, fake_db):
    fake_db.seed("leads", {"nome": "Lia", "email": "l@x.com", "telefone": "1", "mensagem": "Objetivo: reeducacao"})
    response = online_client.get("/leads")
    assert response.json()["source"] == "supabase"
    assert response.json()["data"][0]["nome"] == "Lia"
    fake_db.fail_on = {"select"}
    fallback = online_client.get("/leads")
    assert fallback.status_code == 200
    assert fallback.json()["source"] == "fallback"
    assert fallback.json()["success"] is True


def test_patch_and_delete_leads(online_client, fake_db):
    fake_db.seed("leads", {"nome": "Lia", "email": "l@x.com", "telefone": "1", "mensagem": "m"})
    patched = online_client.patch("/leads", json={"id": 1, "status": "contatado", "prioridade": "alta"})
    assert patched.json()["data"]["prioridade"] == "alta"
    deleted = online_client.request("DELETE", "/leads", json={"id": 1})
    assert deleted.json()["success"] is True
    assert fake_db.tables["leads"] == []


def test_admin_delete_requires_id(offline_client):
    response = offline_client.request("DELETE", "/admin/leads", json={})
    assert response.status_code == 400
    assert response.json()["error"] == "ID é obrigatório"


def test_admin_get_leads_uses_public_shape(online_client, fake_db):
    fake_db.seed("leads", {"nome": "Lia", "email": "l@x.com", "telefone": "1", "mensagem": "Objetivo: ganho-massa. Detalhes: x"})
    data = online_client.get("/admin/leads").json()["data"]
    assert data[0]["id"] == "1"
    assert data[0]["objetivo"] == "ganho-massa"
    assert data[0]["status"] == "novo"


def test_admin_patch_offline(offline_client):
    offline = offline_client.patch("/admin/leads", json={"id": "1", "status": "agendado"})
    assert offline.json()["message"].endswith("(modo offline)")


def test_admin_patch_online(online_client, fake_db):
    fake_db.seed("leads", {"nome": "Lia", "email": "l@x.com", "telefone": "1", "mensagem": "m"})
    online = online_client.patch("/admin/leads", json={"id": "1", "status": "agendado"})
    assert online.status_code == 200
    assert fake_db.tables["leads"][0]["status"] == "agendado"


def test_admin_patch_surfaces_backend_error(online_client, fake_db):
    fake_db.fail_on = {"update"}
    response = online_client.patch("/admin/leads", json={"id": "1", "status": "agendado"})
    assert response.status_code == 500
    assert response.json()["success"] is False
    assert "update falhou" in response.json()["error"]


def test_admin_delete_backend_failure_still_succeeds(online_client, fake_db):
    fake_db.fail_on = {"delete"}
    response = online_client.request("DELETE", "/admin/leads", json={"id": "1"})
    assert response.status_code == 200
    assert response.json()["success"] is True


def test_fallback_after_hydrate_keeps_original_mensagem(online_client, fake_db):
    mensagem = "Objetivo: ganho-massa. Detalhes: x"
    fake_db.seed("leads", {"nome": "Lia", "email": "l@x.com", "telefone": "1", "mensagem": mensagem})
    online_client.get("/admin/leads")
    fake_db.fail_on = {"select"}
    body = online_client.get("/leads").json()
    assert body["source"] == "fallback"
    assert body["data"][0]["mensagem"] == mensagem
