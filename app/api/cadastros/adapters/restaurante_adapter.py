from typing import Optional, List

from sqlalchemy.orm import Session

from app.api.cadastros.contracts.restaurante_contract import (
    IRestauranteContract,
    RestauranteDTO,
    ItemCardapioDTO,
)
from app.api.cadastros.models.model_restaurante import RestauranteModel, ItemCardapioModel


class RestauranteAdapter(IRestauranteContract):
    def __init__(self, db: Session):
        self.db = db

    def _to_dto(self, r: RestauranteModel) -> RestauranteDTO:
        return RestauranteDTO(
            id=r.id,
            owner_user_id=r.owner_user_id,
            nome=r.nome,
            cidade=r.cidade,
            endereco=r.endereco_resumido,
            latitude=float(r.latitude) if r.latitude is not None else None,
            longitude=float(r.longitude) if r.longitude is not None else None,
            aberto=bool(r.aberto),
            pedido_minimo=r.pedido_minimo,
            taxa_entrega=r.taxa_entrega or 0,
            tempo_estimado_min=r.tempo_estimado_min,
        )

    def obter_restaurante(self, restaurante_id: int) -> Optional[RestauranteDTO]:
        r = self.db.get(RestauranteModel, restaurante_id)
        return self._to_dto(r) if r else None

    def obter_restaurante_por_usuario(self, user_id: int) -> Optional[RestauranteDTO]:
        r = self.db.query(RestauranteModel).filter(RestauranteModel.owner_user_id == user_id).first()
        return self._to_dto(r) if r else None

    def listar_itens(self, restaurante_id: int, item_ids: List[int]) -> List[ItemCardapioDTO]:
        if not item_ids:
            return []
        itens = (
            self.db.query(ItemCardapioModel)
            .filter(
                ItemCardapioModel.restaurante_id == restaurante_id,
                ItemCardapioModel.id.in_(item_ids),
            )
            .all()
        )
        return [
            ItemCardapioDTO(
                id=i.id,
                restaurante_id=i.restaurante_id,
                nome=i.nome,
                preco=i.preco,
                disponivel=bool(i.disponivel),
            )
            for i in itens
        ]
