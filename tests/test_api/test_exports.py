"""Exportação (CSV, Excel, PDF) e importação de itens pela API."""
import io

from openpyxl import load_workbook


IMPORT_CSV = (
    "name,codeId,categoryId,city,value,observation\n"
    "Notebook,NTB-001,Informática,São Paulo,4500,\n"
    "Monitor,MON-001,Informática,Rio,\"1.200,50\",Sala 2\n"
    "Mouse,MOU-001,informática,são paulo,80,\n"
    ",SEM-NOME,Informática,Rio,10,\n"
)


def test_import_assets(client, category_id, cities):
    res = client.post(
        "/api/import/assets",
        files={"file": ("itens.csv", IMPORT_CSV.encode("utf-8"), "text/csv")},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["success"] == 3
    assert body["failed"] == 1
    assert body["errors"] == ["Linha 5: Nome é obrigatório"]

    assets = client.get("/api/assets", params={"sort": "code_id", "direction": "asc"}).json()
    assert [a["code_id"] for a in assets] == ["MON-001", "MOU-001", "NTB-001"]
    assert assets[1]["city"] == "São Paulo"
    assert float(assets[0]["value"]) == 1200.5

    history = client.get("/api/history").json()
    assert {h["details"] for h in history} == {"Item importado via CSV."}


def test_import_invalid_header(client):
    res = client.post(
        "/api/import/assets",
        files={"file": ("itens.csv", b"foo,bar\n1,2\n", "text/csv")},
    )
    assert res.json()["success"] == 0
    assert res.json()["errors"][0].startswith("Cabeçalho inválido")


def test_export_assets_csv(client, new_asset):
    new_asset(name='Mesa "grande", madeira', code_id="MES-1")
    res = client.get("/api/export/assets/csv")
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    assert "patrimonio.csv" in res.headers["content-disposition"]

    text = res.content.decode("utf-8")
    assert text.startswith("\ufeff")
    lines = text.lstrip("\ufeff").splitlines()
    assert lines[0] == "ID,Nome,Código ID,Categoria,Cidade/Local,Valor,Observação"
    assert '"Mesa ""grande"", madeira"' in lines[1]
    assert "4500.00" in lines[1]


def test_export_respects_filters(client, new_asset):
    new_asset(code_id="SP-1")
    new_asset(code_id="RJ-1", city="Rio")
    text = client.get("/api/export/assets/csv", params={"city": "Rio"}).content.decode("utf-8")
    assert "RJ-1" in text
    assert "SP-1" not in text


def test_export_assets_excel(client, new_asset):
    new_asset()
    res = client.get("/api/export/assets/excel")
    assert res.status_code == 200
    ws = load_workbook(io.BytesIO(res.content)).active
    assert ws.cell(row=1, column=2).value == "Nome"
    assert ws.cell(row=2, column=3).value == "NTB-001"


def test_export_pdfs(client, new_asset):
    new_asset()
    for path in ("/api/export/assets/pdf", "/api/export/dashboard/pdf", "/api/history/export/pdf"):
        res = client.get(path)
        assert res.status_code == 200, path
        assert res.headers["content-type"] == "application/pdf"
        assert res.content.startswith(b"%PDF")


def test_export_dashboard_csv(client, new_asset):
    new_asset(value="100")
    text = client.get("/api/export/dashboard/csv").content.decode("utf-8")
    assert "Valor por Cidade" in text
    assert "Distribuição por Categoria" in text
    assert "São Paulo,100.00" in text


def test_export_history_csv(client, new_asset):
    asset_id = new_asset()["id"]
    client.delete(f"/api/assets/{asset_id}")

    res = client.get("/api/history/export/csv", params={"action": "Excluído"})
    lines = res.content.decode("utf-8").lstrip("\ufeff").splitlines()
    assert lines[0] == "ID,Item,Código ID,Ação,Usuário,Data e Hora,Detalhes"
    assert len(lines) == 2
    assert "Excluído" in lines[1]
    assert "Admin Teste" in lines[1]


def test_exports_require_login(anon_client):
    assert anon_client.get("/api/export/assets/csv").status_code == 401
    assert anon_client.post("/api/import/assets", files={"file": ("a.csv", b"x", "text/csv")}).status_code == 401
