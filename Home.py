# portal_vendas/Home.py
import streamlit as st

from utils.app_context import get_app_config, get_auth

st.set_page_config(
    page_title="Portal de Vendas",
    page_icon="🏠",
    layout="wide"
)

auth = get_auth()
config = get_app_config()
user = auth.refresh_user()

# --- LOGIN ---
if user is None:
    st.title("🔐 Portal de Vendas")
    if not config.is_hosted:
        st.info("Modo local: dados salvos neste servidor. Usuários padrão: admin/admin123 e viewer/viewer123.")

    with st.form("login_form"):
        identifier = st.text_input("Email ou usuário")
        secret = st.text_input("Senha", type="password")
        submitted = st.form_submit_button("Entrar", type="primary", use_container_width=True)

    if submitted:
        if not identifier or not secret:
            st.error("Preencha usuário e senha.")
        else:
            with st.spinner("Entrando..."):
                result = auth.login(identifier.strip(), secret)
            if result.success:
                st.rerun()
            else:
                st.error(result.error or "Erro ao fazer login")
    st.stop()

# --- HEADER ---
col1, col2 = st.columns([3, 1])
with col1:
    st.title("Portal de Vendas 📈")
    st.markdown(f"Olá, **{user.display_name}**.")
with col2:
    if st.button("🚪 Sair", use_container_width=True):
        auth.logout()
        st.rerun()

st.markdown("---")

# --- MODULES ---
card1, card2 = st.columns(2)
with card1:
    st.subheader("📦 Catálogo de Produtos")
    st.write("Acesse todo o portfólio de produtos, fotos e detalhes técnicos.")
    st.page_link("pages/1_📦_Catalogo.py", label="Abrir catálogo", icon="📦")
with card2:
    st.subheader("🎯 Minhas Metas")
    st.write("Acompanhe seu desempenho mensal, KPIs e lance sua produção diária.")
    st.page_link("pages/4_🎯_Metas.py", label="Abrir metas", icon="🎯")

card3, card4 = st.columns(2)
with card3:
    st.subheader("📊 Vendas e Faturamento")
    st.write("Ranking por canal com metas, realizado e projeção por dia e semana.")
    st.page_link("pages/3_📊_Vendas_e_Faturamento.py", label="Abrir ranking", icon="📊")
with card4:
    st.subheader("🧾 Lançamentos de Vendas")
    st.write("Registre pedidos vendidos e faturados e acompanhe o saldo a faturar.")
    st.page_link("pages/5_🧾_Lancamentos.py", label="Abrir lançamentos", icon="🧾")

if auth.is_admin(user):
    st.markdown("---")
    st.page_link("pages/2_🗂️_Admin.py", label="Painel administrativo", icon="⚙️")
