import os

from trekmed.services.photo_inbox import PhotoInbox

def _upper(content: bytes) -> bytes:
    return content.upper()

def test_add_path_prepares_content(tmp_path):
    foto = tmp_path / "foto.jpg"
    foto.write_bytes(b"jpeg")
    inbox = PhotoInbox(_upper, str(tmp_path))

    assert inbox.add_path("foto.jpg", str(foto))
    assert inbox.fotos == [b"JPEG"]
    # Arquivo escolhido no disco do usuário não é apagado
    assert foto.exists()

def test_uploaded_file_is_read_and_removed(tmp_path):
    (tmp_path / "web.jpg").write_bytes(b"do-navegador")
    inbox = PhotoInbox(_upper, str(tmp_path))

    assert inbox.add_uploaded("web.jpg")
    assert inbox.fotos == [b"DO-NAVEGADOR"]
    assert not os.path.exists(tmp_path / "web.jpg")

def test_uploaded_name_cannot_escape_dir(tmp_path):
    uploads = tmp_path / "uploads"
    uploads.mkdir()
    (tmp_path / "segredo.jpg").write_bytes(b"x")
    inbox = PhotoInbox(_upper, str(uploads))

    assert not inbox.add_uploaded("../segredo.jpg")
    assert (tmp_path / "segredo.jpg").exists()
    assert inbox.falhas == ["../segredo.jpg"]

def test_unreadable_or_empty_files_are_reported(tmp_path):
    (tmp_path / "vazia.jpg").write_bytes(b"")
    inbox = PhotoInbox(_upper, str(tmp_path))

    assert not inbox.add_path("sumiu.jpg", str(tmp_path / "sumiu.jpg"))
    assert not inbox.add_path("vazia.jpg", str(tmp_path / "vazia.jpg"))
    assert inbox.fotos == []
    assert inbox.falhas == ["sumiu.jpg", "vazia.jpg"]

def test_remove_and_clear(tmp_path):
    inbox = PhotoInbox(_upper, str(tmp_path))
    for nome in ("a", "b", "c"):
        (tmp_path / nome).write_bytes(nome.encode())
        inbox.add_path(nome, str(tmp_path / nome))

    inbox.remove(1)
    assert inbox.fotos == [b"A", b"C"]
    inbox.falhas.append("x")
    inbox.clear()
    assert (inbox.fotos, inbox.falhas) == ([], [])
