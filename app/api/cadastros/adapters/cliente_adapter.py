from typing import Optional

from sqlalchemy.orm import Session

from app.api.cadastros.contracts.cliente_contract import IClienteContract, ClienteDTO
from app.api.cadastros.models.model_cliente import ClienteModel
from app.api.cadastros.models.model_endereco import EnderecoModel


class ClienteAdapter(IClienteContract):
    def __init__(self, db: Session):
        self.db = db

    def obter_cliente_por_usuario(self, user_id: int) -> Optional[ClienteDTO]:
        cliente = self.db.query(ClienteModel).filter(ClienteModel.user_id == user_id).first()
        if not cliente:
            return None
        return ClienteDTO(
            id=cliente.id,
            user_id=cliente.user_id,
            nome=cliente.nome,
            email=cliente.email,
            telefone=cliente.telefone,
            cpf=cliente.cpf,
        )

    def obter_snapshot_endereco(self, cliente_id: int, endereco_id: int) -> Optional[dict]:
        endereco = (
            self.db.query(EnderecoModel)
            .filter(EnderecoModel.id == endereco_id, EnderecoModel.cliente_id == cliente_id)
            .first()
        )
        return endereco.to_snapshot() if endereco else None
