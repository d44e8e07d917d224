import uuid

import pytest

from trekmed.models.atendimento import AtendimentoDetalhado
from trekmed.ui.widgets.atendimento_map import AtendimentoMap

def detalhado(lat, lng, nome="Ana"):
    atendimento_id = str(uuid.uuid4())
    return AtendimentoDetalhado.from_api({
        "id": atendimento_id,
        "participante_id": "p-1",
        "medico_id": "m-1",
        "evento_id": "evento-1",
        "descricao": "Entorse",
        "gravidade": "moderado",
        "latitude": lat,
        "longitude": lng,
        "status": "em_andamento",
        "participante": {"id": "p-1", "nome": nome, "nfc_tag_id": "TAG-1", "evento_id": "evento-1"},
        "medico": None,
        "fotos": [],
    })

@pytest.fixture
def mapa():
    widget = AtendimentoMap()
    widget.centros = []
    return widget

def _espiar(widget):
    widget.map_control.center_on = lambda point, zoom=None: widget.centros.append(
        (point.latitude, point.longitude)
    )

def test_first_render_centers_on_newest(mapa):
    antigo = detalhado(-20.0, -43.0)
    novo = detalhado(-21.5, -44.5)
    mapa.render([novo, antigo], lambda _id: False)

    centro = mapa.map_control.initial_center
    assert (centro.latitude, centro.longitude) == (-21.5, -44.5)
    assert len(mapa.marker_layer.markers) == 2
    assert mapa.centered_on == novo.id

def test_new_arrival_recenters_map(mapa):
    primeiro = detalhado(-20.0, -43.0)
    mapa.render([primeiro], lambda _id: False)
    _espiar(mapa)

    chegou = detalhado(-22.25, -45.75)
    mapa.render([chegou, primeiro], lambda _id: _id == chegou.id)

    assert mapa.centros == [(-22.25, -45.75)]
    assert mapa.centered_on == chegou.id

    # Re-renderizar (pulso, filtro) não move o mapa de novo
    mapa.render([chegou, primeiro], lambda _id: _id == chegou.id)
    assert mapa.centros == [(-22.25, -45.75)]

def test_filter_change_does_not_recenter(mapa):
    a = detalhado(-20.0, -43.0)
    b = detalhado(-21.0, -44.0)
    mapa.render([b, a], lambda _id: False)
    _espiar(mapa)

    # Filtro esconde o mais recente: o novo topo não é atendimento recém-chegado
    mapa.render([a], lambda _id: False)
    assert mapa.centros == []
