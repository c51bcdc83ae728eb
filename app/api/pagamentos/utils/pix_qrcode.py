import base64
from io import BytesIO

import qrcode


def render_qr_code_data_url(conteudo: str, largura: int = 300, margem: int = 2) -> str:
    """Renderiza o conteúdo como QR Code PNG e devolve um data URL (data:image/png;base64,...)."""
    qr = qrcode.QRCode(border=margem, box_size=10)
    qr.add_data(conteudo)
    qr.make(fit=True)

    imagem = qr.make_image(fill_color="black", back_color="white")
    imagem = imagem.get_image().resize((largura, largura))

    buffer = BytesIO()
    imagem.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")
